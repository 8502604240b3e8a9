import io

import structlog
from pypdf import PdfReader
from pypdf.errors import PdfReadError

logger = structlog.get_logger()

SUPPORTED_EXTENSIONS = (".pdf", ".txt")


class UnsupportedDocument(ValueError):
    pass


def extract_text_from_pdf(content: bytes) -> str:
    try:
        reader = PdfReader(io.BytesIO(content))
        if reader.is_encrypted:
            reader.decrypt("")
        text_parts = [page.extract_text() or "" for page in reader.pages]
    except (PdfReadError, ValueError) as e:
        raise UnsupportedDocument(f"PDF parse error: {e}") from e
    return "\n".join(text_parts)


def extract_text(filename: str, content: bytes) -> str:
    """Text of an uploaded PDF or TXT file."""
    name = (filename or "").lower()
    if name.endswith(".pdf"):
        text = extract_text_from_pdf(content)
    elif name.endswith(".txt"):
        text = content.decode("utf-8", errors="ignore")
    else:
        raise UnsupportedDocument(f"Unsupported file type; expected one of {', '.join(SUPPORTED_EXTENSIONS)}")
    logger.info("text_extracted", filename=filename, chars=len(text))
    return text
