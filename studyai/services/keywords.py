import difflib
from types import MappingProxyType
from typing import FrozenSet, List, Optional, Sequence

import structlog

from studyai.schemas import Keyword, Topic
from studyai.services.term_stats import TermIndex, frequency
from studyai.services.text import STOPWORDS, normalize_words

logger = structlog.get_logger()

MIN_KEYWORD_CHARS = 4
PREFIX_LENGTH = 4
SIMILARITY_THRESHOLD = 0.7


def _display(word: str) -> str:
    return word[:1].upper() + word[1:]


# -------------------- KEYWORDS --------------------

def extract_keywords(text: str, n: int = 15, index: Optional[TermIndex] = None,
                     stopwords: FrozenSet[str] = STOPWORDS) -> List[Keyword]:
    """Top-n non-stop-word terms ordered by score.

    Score is frequency over total word count. When ``index`` holds more than
    one document, TF-IDF against that corpus is used instead, scaled by the
    best TF-IDF so scores stay within [0, 1].
    """
    if n < 1:
        raise ValueError("n must be >= 1")
    words = normalize_words(text)
    if not words:
        return []
    counts = frequency(w for w in words if len(w) >= MIN_KEYWORD_CHARS and w not in stopwords)
    if not counts:
        return []

    if index is not None and index.is_multi_document:
        return _tfidf_keywords(counts, index, n)

    total = len(words)
    # sorted() is stable: equal counts keep first-occurrence order
    ranked = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)[:n]
    return [Keyword(word=_display(w), score=c / total, frequency=c) for w, c in ranked]


def _tfidf_keywords(counts, index: TermIndex, n: int) -> List[Keyword]:
    tokens = [w for w, c in counts.items() for _ in range(c)]
    scored = []
    for word, count in counts.items():
        score = index.tfidf(word, tokens)
        if score > 0:
            scored.append((word, score, count))
    if not scored:
        return []
    scored.sort(key=lambda item: item[1], reverse=True)
    scored = scored[:n]
    best = scored[0][1]
    return [Keyword(word=_display(w), score=s / best, frequency=c) for w, s, c in scored]


# -------------------- TOPICS --------------------

def shares_prefix(seed: str, other: str) -> bool:
    a, b = seed.lower(), other.lower()
    return a[:PREFIX_LENGTH] in b or b[:PREFIX_LENGTH] in a


def is_similar(seed: str, other: str) -> bool:
    ratio = difflib.SequenceMatcher(None, seed.lower(), other.lower()).ratio()
    return ratio > SIMILARITY_THRESHOLD


GROUPING_STRATEGIES = MappingProxyType({
    "prefix": shares_prefix,
    "similarity": is_similar,
})


def extract_topics(keywords: Sequence[Keyword], strategy: str = "prefix",
                   max_topics: int = 8) -> List[Topic]:
    """Greedy single-pass clustering of keywords into topics.

    Keywords are visited in the given (score) order. Each unclaimed keyword
    seeds a topic that takes every still-unclaimed keyword related to it;
    a keyword never moves once claimed, so the grouping depends on visiting
    order and is not globally optimal.
    """
    try:
        related = GROUPING_STRATEGIES[strategy]
    except KeyError:
        raise ValueError(f"Unknown grouping strategy: {strategy!r}") from None

    topics: List[Topic] = []
    claimed = set()
    for seed in keywords:
        if len(topics) >= max_topics:
            break
        if seed.word in claimed:
            continue
        members = [k for k in keywords if k.word not in claimed and related(seed.word, k.word)]
        if not members:
            continue
        claimed.update(k.word for k in members)
        importance = sum(k.score for k in members) / len(members)
        topics.append(Topic(
            name=seed.word,
            keywords=[k.word for k in members],
            importance=importance,
            frequency=len(members),
        ))

    topics.sort(key=lambda t: t.importance, reverse=True)
    logger.debug("topics_extracted", strategy=strategy, count=len(topics))
    return topics
