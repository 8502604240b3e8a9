import re
from typing import FrozenSet, List

from studyai.schemas import Document
from studyai.services.term_stats import frequency


MIN_SENTENCE_CHARS = 15
MIN_WORD_CHARS = 3

STOPWORDS: FrozenSet[str] = frozenset("""
the and or but in on at to for of with by is are was were been be have has had do does did
will would could should may might can this that these those a an as if it its then than only
also just very so about into through during before after above below up down out off over
under again further once here there when where why how all any both each few more most other
some such no nor not own same from they their them what which who whom you your our we
""".split())

# -------------------- CLEANING / SENTENCES --------------------

MULTI_SPACE_RE = re.compile(r"\s+")
NON_ALPHA_RE = re.compile(r"[^a-z]")
SENT_SPLIT = re.compile(r"(?<=[.?!])\s+(?=[A-Z(\"'])")


def clean_text(raw_text: str) -> str:
    return MULTI_SPACE_RE.sub(" ", raw_text or "").strip()


def segment(text: str) -> List[str]:
    """Split text into sentences, dropping fragments and headers."""
    text = clean_text(text)
    if not text:
        return []
    sents = [s.strip() for s in SENT_SPLIT.split(text)]
    return [s for s in sents if len(s) >= MIN_SENTENCE_CHARS]


# -------------------- WORDS --------------------

def normalize_words(text: str, min_length: int = MIN_WORD_CHARS) -> List[str]:
    """Lowercased alphabetic tokens, stop words kept."""
    out = []
    for raw in (text or "").lower().split():
        word = NON_ALPHA_RE.sub("", raw)
        if len(word) >= min_length:
            out.append(word)
    return out


def tokenize(text: str, stopwords: FrozenSet[str] = STOPWORDS,
             min_length: int = MIN_WORD_CHARS) -> List[str]:
    return [w for w in normalize_words(text, min_length) if w not in stopwords]


def build_document(text: str, stopwords: FrozenSet[str] = STOPWORDS) -> Document:
    """Derive sentences, words and word frequency once for an uploaded text."""
    words = normalize_words(text)
    return Document(
        text=text or "",
        sentences=segment(text),
        words=words,
        word_frequency=frequency(w for w in words if w not in stopwords),
    )
