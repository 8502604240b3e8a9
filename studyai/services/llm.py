from __future__ import annotations

import asyncio
from typing import List, Optional

import structlog
from openai import AsyncOpenAI
from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from studyai.config import Settings, get_settings
from studyai.schemas import Difficulty, Enrichment, Keyword, Topic
from studyai.services.monitoring import ENRICHMENT_REQUESTS
from studyai.services.pipeline import local_enrichment

logger = structlog.get_logger()

MAX_KEYWORDS = 15
MAX_TOPICS = 8


class EnrichmentUnavailable(Exception):
    """The remote model cannot be used; the local pipeline takes over."""


class MalformedEnrichmentResponse(EnrichmentUnavailable):
    """The remote payload does not decode into the expected shape."""


class RemoteTopic(BaseModel):
    name: str = Field(min_length=1)
    keywords: List[str] = Field(min_length=1)
    importance: float = Field(ge=0, le=1)


_KEYWORDS = TypeAdapter(List[str])
_TOPICS = TypeAdapter(List[RemoteTopic])
_DIFFICULTY = TypeAdapter(Difficulty)


def _get_client(settings: Settings) -> AsyncOpenAI:
    if not settings.OPENAI_API_KEY:
        raise EnrichmentUnavailable("OPENAI_API_KEY not set")
    client = AsyncOpenAI(api_key=settings.OPENAI_API_KEY)
    return client.with_options(timeout=settings.ENRICHMENT_TIMEOUT_SECONDS)


def _strip_code_fences(content: str) -> str:
    # Strip ```json ... ``` or ``` ... ``` wrappers; nothing else is trimmed
    text = content.strip()
    if text.startswith("```"):
        first_nl = text.find("\n")
        text = text[first_nl + 1:] if first_nl != -1 else ""
        if text.rstrip().endswith("```"):
            text = text.rstrip()[:-3]
    return text.strip()


def _decode(adapter: TypeAdapter, content: str):
    try:
        return adapter.validate_json(_strip_code_fences(content))
    except ValidationError as e:
        raise MalformedEnrichmentResponse(f"unexpected payload: {e.error_count()} error(s)") from e


async def _complete(client: AsyncOpenAI, model: str, prompt: str) -> str:
    rsp = await client.chat.completions.create(
        model=model,
        messages=[{"role": "user", "content": prompt}],
        temperature=0.2,
    )
    content = rsp.choices[0].message.content if rsp.choices else None
    if not content or not content.strip():
        raise MalformedEnrichmentResponse("empty completion")
    return content.strip()


# -------------------- SUB-CALLS --------------------

async def remote_summary(client: AsyncOpenAI, model: str, text: str) -> str:
    prompt = (
        "Summarize the following study material for exam preparation. Use these sections, "
        "each header on its own line and each point starting with '• ': OVERVIEW, KEY CONCEPTS, "
        "IMPORTANT POINTS, EXAMPLES & APPLICATIONS, KEY TAKEAWAYS.\n\n"
        f"{text}"
    )
    return await _complete(client, model, prompt)


async def remote_keywords(client: AsyncOpenAI, model: str, text: str) -> List[Keyword]:
    prompt = (
        f"Extract the {MAX_KEYWORDS} most important keywords or key phrases from this study "
        "material, most important first. Return ONLY a JSON array of strings.\n\n"
        f"{text}"
    )
    words: List[str] = []
    for word in _decode(_KEYWORDS, await _complete(client, model, prompt)):
        word = word.strip()
        if word and word.lower() not in (w.lower() for w in words):
            words.append(word)
    if not words:
        raise MalformedEnrichmentResponse("no keywords returned")
    return [
        Keyword(
            word=word,
            score=(MAX_KEYWORDS - i) / MAX_KEYWORDS,
            frequency=max(1, (MAX_KEYWORDS - i) // 2),
        )
        for i, word in enumerate(words[:MAX_KEYWORDS])
    ]


async def remote_topics(client: AsyncOpenAI, model: str, text: str) -> List[Topic]:
    prompt = (
        "Identify the 6-8 main topics of this study material. Return ONLY a JSON array of "
        'objects {"name": str, "keywords": [str, ...], "importance": number between 0 and 1}, '
        "most important first.\n\n"
        f"{text}"
    )
    remote = _decode(_TOPICS, await _complete(client, model, prompt))
    if not remote:
        raise MalformedEnrichmentResponse("no topics returned")
    topics = [
        Topic(name=t.name, keywords=t.keywords, importance=t.importance, frequency=len(t.keywords))
        for t in remote[:MAX_TOPICS]
    ]
    topics.sort(key=lambda t: t.importance, reverse=True)
    return topics


async def remote_difficulty(client: AsyncOpenAI, model: str, text: str) -> Difficulty:
    prompt = (
        "Rate the reading difficulty of this study material considering vocabulary, sentence "
        "structure and required prior knowledge. Answer with exactly one word: easy, medium "
        "or hard.\n\n"
        f"{text}"
    )
    answer = (await _complete(client, model, prompt)).lower().strip(" .\"'")
    try:
        return _DIFFICULTY.validate_python(answer)
    except ValidationError as e:
        raise MalformedEnrichmentResponse(f"unexpected difficulty {answer!r}") from e


# -------------------- ENRICHMENT --------------------

async def _remote_enrichment(client: AsyncOpenAI, settings: Settings, text: str) -> Enrichment:
    sample = text[:settings.ENRICHMENT_MAX_CHARS]
    model = settings.OPENAI_MODEL
    results = await asyncio.gather(
        remote_summary(client, model, sample),
        remote_keywords(client, model, sample),
        remote_topics(client, model, sample),
        remote_difficulty(client, model, sample),
        return_exceptions=True,
    )
    for result in results:
        if isinstance(result, BaseException):
            raise result
    summary, keywords, topics, difficulty = results
    return Enrichment(summary=summary, keywords=keywords, topics=topics,
                      difficulty=difficulty, source="llm")


async def enrich(text: str, settings: Optional[Settings] = None,
                 client: Optional[AsyncOpenAI] = None) -> Enrichment:
    """Summary, keywords, topics and difficulty from the remote model.

    Every failure (missing key, network error, timeout, malformed payload)
    falls back to the local pipeline, which returns the same shape.
    """
    settings = settings or get_settings()
    if not (text or "").strip():
        return local_enrichment(text or "")

    try:
        if not settings.ENRICHMENT_ENABLED:
            raise EnrichmentUnavailable("enrichment disabled")
        client = client or _get_client(settings)
        enrichment = await asyncio.wait_for(
            _remote_enrichment(client, settings, text),
            timeout=settings.ENRICHMENT_TIMEOUT_SECONDS,
        )
    except Exception as e:
        logger.warning("enrichment_unavailable", error=str(e), error_type=type(e).__name__)
        ENRICHMENT_REQUESTS.labels(outcome="fallback").inc()
        return local_enrichment(text)

    ENRICHMENT_REQUESTS.labels(outcome="llm").inc()
    logger.info("enrichment_completed", keywords=len(enrichment.keywords), topics=len(enrichment.topics))
    return enrichment
