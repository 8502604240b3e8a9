import re
from types import MappingProxyType
from typing import Callable, List, Sequence

import structlog

from studyai.schemas import Keyword, SummaryResult, Topic
from studyai.services.term_stats import frequency
from studyai.services.text import normalize_words, segment, tokenize

logger = structlog.get_logger()


# -------------------- POSITION BOOST --------------------

def decay_boost(index: int, total: int) -> float:
    return max(0.5, 1 - (index / total) * 0.3)


def emphasis_boost(index: int, total: int) -> float:
    if index < 2:
        return 1.5
    if index >= total - 2:
        return 1.2
    return 1.0


POSITION_STRATEGIES = MappingProxyType({
    "decay": decay_boost,
    "emphasis": emphasis_boost,
})


def _position_boost(strategy: str) -> Callable[[int, int], float]:
    try:
        return POSITION_STRATEGIES[strategy]
    except KeyError:
        raise ValueError(f"Unknown position strategy: {strategy!r}") from None


# -------------------- RANKING --------------------

def score_sentences(sentences: Sequence[str], text: str, strategy: str = "decay") -> List[float]:
    """Frequency-weighted sentence scores scaled by the position boost."""
    boost = _position_boost(strategy)
    word_freq = frequency(tokenize(text))
    total = len(sentences)
    scores = []
    for idx, sentence in enumerate(sentences):
        base = sum(word_freq.get(w, 0) for w in normalize_words(sentence))
        scores.append(base * boost(idx, total))
    return scores


def summarize(text: str, target_sentence_count: int, strategy: str = "decay") -> List[str]:
    """Pick the top sentences by score and return them in source order."""
    if target_sentence_count < 1:
        raise ValueError("target_sentence_count must be >= 1")
    boost = _position_boost(strategy)

    sentences = segment(text)
    if len(sentences) <= target_sentence_count:
        return sentences

    scores = score_sentences(sentences, text, strategy=strategy)
    ranked = sorted(range(len(sentences)), key=lambda i: (-scores[i], i))
    chosen = sorted(ranked[:target_sentence_count])
    logger.debug("sentences_ranked", total=len(sentences), chosen=chosen,
                 strategy=strategy, boost=boost.__name__)
    return [sentences[i] for i in chosen]


def join_sentences(sentences: Sequence[str]) -> str:
    out = []
    for s in sentences:
        s = s.strip()
        if not s:
            continue
        if not s.endswith((".", "?", "!")):
            s = s + "."
        out.append(s)
    return " ".join(out)


def compression_ratio(summary: str, source: str) -> float:
    if not source:
        return 0
    return round(len(summary) / len(source) * 100)


def summarize_text(text: str, target_sentence_count: int = 3, strategy: str = "decay") -> SummaryResult:
    sentences = summarize(text, target_sentence_count, strategy=strategy)
    summary = join_sentences(sentences)
    return SummaryResult(
        text=summary,
        sentence_count=len(sentences),
        compression_ratio=compression_ratio(summary, text or ""),
    )


# -------------------- STRUCTURED SUMMARY --------------------

EXAMPLE_CUE_RE = re.compile(r"\b(for example|for instance|such as|e\.g\.)", re.I)

SECTION_LAYOUT = (
    ("OVERVIEW", 2),
    ("KEY CONCEPTS", 3),
    ("IMPORTANT POINTS", 3),
)


def _render_section(title: str, lines: Sequence[str]) -> str:
    return "\n".join([title] + [f"• {line}" for line in lines])


def structured_summary(text: str, keywords: Sequence[Keyword], topics: Sequence[Topic],
                       top_k: int = 8) -> str:
    """Labeled study summary built from emphasis-ranked sentences.

    Example-bearing sentences are lifted into their own section; the rest
    fill Overview (2), Key Concepts (3) and Important Points (3) in source
    order. Key Takeaways come from the top keywords and topic names.
    """
    ranked = summarize(text, top_k, strategy="emphasis") if text and text.strip() else []
    examples = [s for s in ranked if EXAMPLE_CUE_RE.search(s)]
    remaining = [s for s in ranked if not EXAMPLE_CUE_RE.search(s)]

    sections = []
    start = 0
    for title, size in SECTION_LAYOUT:
        bucket = remaining[start:start + size]
        start += size
        if bucket:
            sections.append(_render_section(title, bucket))
    if examples:
        sections.append(_render_section("EXAMPLES & APPLICATIONS", examples))

    takeaways = []
    if keywords:
        takeaways.append("Key terms: " + ", ".join(k.word for k in keywords[:3]))
    if topics:
        takeaways.append("Main topics: " + ", ".join(t.name for t in topics[:3]))
    if takeaways:
        sections.append(_render_section("KEY TAKEAWAYS", takeaways))

    return "\n\n".join(sections)
