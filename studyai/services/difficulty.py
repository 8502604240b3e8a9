import math

from studyai.schemas import Difficulty, Document, DocumentMetrics

WORDS_PER_MINUTE = 200

# (word_count, avg_words_per_sentence, unique_word_ratio) lower bounds, checked in order
HARD_THRESHOLDS = (2000, 20, 0.4)
MEDIUM_THRESHOLDS = (800, 15)

EASY_SCORE = 0.02
MEDIUM_SCORE = 0.01


def classify(word_count: int, avg_words_per_sentence: float, unique_word_ratio: float) -> Difficulty:
    """Reading difficulty of a whole document; first matching rule wins."""
    hard_words, hard_avg, hard_unique = HARD_THRESHOLDS
    if word_count > hard_words and avg_words_per_sentence > hard_avg and unique_word_ratio > hard_unique:
        return "hard"
    medium_words, medium_avg = MEDIUM_THRESHOLDS
    if word_count > medium_words and avg_words_per_sentence > medium_avg:
        return "medium"
    return "easy"


def question_difficulty(score: float) -> Difficulty:
    """Per-question difficulty from the score of the term it is built on."""
    if score >= EASY_SCORE:
        return "easy"
    if score >= MEDIUM_SCORE:
        return "medium"
    return "hard"


def reading_time_minutes(word_count: int) -> int:
    return math.ceil(word_count / WORDS_PER_MINUTE)


def document_metrics(document: Document) -> DocumentMetrics:
    word_count = len(document.words)
    sentence_count = len(document.sentences)
    if word_count == 0:
        return DocumentMetrics(sentence_count=sentence_count)

    avg_words = word_count / max(sentence_count, 1)
    unique_ratio = len(document.word_frequency) / word_count
    return DocumentMetrics(
        word_count=word_count,
        sentence_count=sentence_count,
        avg_words_per_sentence=round(avg_words),
        unique_word_ratio_percent=round(unique_ratio * 100),
        difficulty=classify(word_count, avg_words, unique_ratio),
        reading_time_minutes=reading_time_minutes(word_count),
    )
