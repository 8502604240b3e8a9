"""
Local deterministic pipeline: text -> summary, keywords, topics, metadata, questions.
"""
import random
from typing import Iterable, List, Optional, Sequence

import structlog

from studyai.config import get_settings
from studyai.schemas import Document, DocumentAnalysis, Enrichment, Keyword, ProcessingResult, SummaryResult
from studyai.services.difficulty import document_metrics
from studyai.services.keywords import extract_keywords, extract_topics
from studyai.services.logging import log_performance
from studyai.services.questions import QuestionGenerator
from studyai.services.summarizer import structured_summary, summarize_text
from studyai.services.term_stats import TermIndex
from studyai.services.text import build_document

logger = structlog.get_logger()

# keywords pulled per requested question, so later slots and distractors have material
KEYWORDS_PER_QUESTION = 3


@log_performance("analyze_document")
def analyze_document(text: str, summary_sentences: Optional[int] = None,
                     keyword_count: Optional[int] = None,
                     position_strategy: Optional[str] = None,
                     grouping_strategy: Optional[str] = None) -> DocumentAnalysis:
    return _analyze(build_document(text), summary_sentences, keyword_count,
                    position_strategy, grouping_strategy)


def _analyze(document: Document, summary_sentences: Optional[int] = None,
             keyword_count: Optional[int] = None,
             position_strategy: Optional[str] = None,
             grouping_strategy: Optional[str] = None) -> DocumentAnalysis:
    settings = get_settings()
    summary_sentences = summary_sentences or settings.DEFAULT_SUMMARY_SENTENCES
    keyword_count = keyword_count or settings.DEFAULT_KEYWORD_COUNT
    text = document.text

    summary = summarize_text(text, summary_sentences,
                             strategy=position_strategy or settings.SUMMARY_POSITION_STRATEGY)
    keywords = extract_keywords(text, keyword_count)
    topics = extract_topics(keywords, strategy=grouping_strategy or settings.TOPIC_GROUPING_STRATEGY,
                            max_topics=settings.MAX_TOPICS)

    metadata = document_metrics(document)
    metadata.compression_ratio_percent = summary.compression_ratio
    logger.info(
        "document_analyzed",
        words=metadata.word_count,
        sentences=metadata.sentence_count,
        keywords=len(keywords),
        topics=len(topics),
        difficulty=metadata.difficulty,
    )
    return DocumentAnalysis(summary=summary.text, keywords=keywords, topics=topics, metadata=metadata)


@log_performance("process_document")
def process(text: str, question_count: int = 10, difficulty: str = "all",
            types: Iterable[str] = ("mcq",), summary_sentences: Optional[int] = None,
            rng: Optional[random.Random] = None, balanced: bool = False,
            randomize: bool = True) -> ProcessingResult:
    """Full boundary output for one document, questions included."""
    if question_count < 1:
        raise ValueError("question_count must be >= 1")
    types = list(types)
    if not types:
        raise ValueError("at least one question type is required")

    settings = get_settings()
    document = build_document(text)
    analysis = _analyze(document, summary_sentences=summary_sentences)
    question_keywords = extract_keywords(
        text, max(settings.DEFAULT_KEYWORD_COUNT, question_count * KEYWORDS_PER_QUESTION)
    )
    questions = QuestionGenerator(rng=rng).generate(
        document.sentences, question_keywords, analysis.topics, question_count,
        difficulty=difficulty, types=types, randomize=randomize, balanced=balanced,
    )
    return ProcessingResult(
        summary=analysis.summary,
        keywords=analysis.keywords,
        topics=analysis.topics,
        metadata=analysis.metadata,
        questions=questions,
    )


def local_enrichment(text: str) -> Enrichment:
    """Same shape as the remote enrichment, produced entirely locally."""
    analysis = analyze_document(text)
    summary = structured_summary(text, analysis.keywords, analysis.topics) or analysis.summary
    return Enrichment(
        summary=summary,
        keywords=analysis.keywords,
        topics=analysis.topics,
        difficulty=analysis.metadata.difficulty,
        source="local",
    )


def bulk_summary(texts: Sequence[str], length: int = 3, strategy: Optional[str] = None) -> SummaryResult:
    combined = "\n\n".join(t for t in texts if t)
    return summarize_text(combined, length, strategy=strategy or get_settings().SUMMARY_POSITION_STRATEGY)


def corpus_keywords(texts: Sequence[str], target: int = 0, n: int = 15) -> List[Keyword]:
    """Keywords of ``texts[target]`` scored by TF-IDF across all ``texts``."""
    index = TermIndex()
    for t in texts:
        index.add_document(t)
    return extract_keywords(texts[target], n, index=index)
