"""
Pydantic models shared by the analysis services, the quiz service and the API.
"""
from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator, model_validator

Difficulty = Literal["easy", "medium", "hard"]
RequestedDifficulty = Literal["easy", "medium", "hard", "all"]
QuestionType = Literal["mcq", "fill-in-blank", "true-false"]

QUESTION_TYPES = ("mcq", "fill-in-blank", "true-false")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Aware UTC datetime; naive values are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# ----------------- Text analysis -----------------

class Document(BaseModel):
    """Raw text plus the fields derived from it once at ingestion."""
    model_config = ConfigDict(frozen=True)

    text: str
    sentences: List[str] = Field(default_factory=list)
    words: List[str] = Field(default_factory=list)
    word_frequency: Dict[str, int] = Field(default_factory=dict)


class Keyword(BaseModel):
    model_config = ConfigDict(frozen=True)

    word: str
    score: float = Field(ge=0)
    frequency: int = Field(ge=0)


class Topic(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    keywords: List[str] = Field(min_length=1)
    importance: float = Field(ge=0, le=1)
    frequency: int = Field(ge=0)


class SummaryResult(BaseModel):
    text: str
    sentence_count: int
    compression_ratio: float = Field(description="summary length / source length, as a percentage")


class DocumentMetrics(BaseModel):
    word_count: int = 0
    sentence_count: int = 0
    avg_words_per_sentence: int = 0
    unique_word_ratio_percent: int = 0
    difficulty: Difficulty = "easy"
    compression_ratio_percent: float = 0
    reading_time_minutes: int = 0


class DocumentAnalysis(BaseModel):
    summary: str
    keywords: List[Keyword]
    topics: List[Topic]
    metadata: DocumentMetrics


class Enrichment(BaseModel):
    summary: str
    keywords: List[Keyword]
    topics: List[Topic]
    difficulty: Difficulty
    source: Literal["llm", "local"]


# ----------------- Questions -----------------

class McqOption(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    is_correct: bool = False


class _QuestionBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    prompt: str
    difficulty: Difficulty
    topic: str = "General"
    explanation: str


class MultipleChoiceQuestion(_QuestionBase):
    type: Literal["mcq"] = "mcq"
    options: List[McqOption] = Field(min_length=2)

    @model_validator(mode="after")
    def _exactly_one_correct(self):
        correct = sum(1 for opt in self.options if opt.is_correct)
        if correct != 1:
            raise ValueError(f"mcq needs exactly one correct option, got {correct}")
        return self

    def correct_option(self) -> McqOption:
        return next(opt for opt in self.options if opt.is_correct)


class FillInBlankQuestion(_QuestionBase):
    type: Literal["fill-in-blank"] = "fill-in-blank"
    correct_answer: str
    accepted_answers: List[str] = Field(default_factory=list)


class TrueFalseQuestion(_QuestionBase):
    type: Literal["true-false"] = "true-false"
    correct_answer: Literal["True", "False"]


Question = Annotated[
    Union[MultipleChoiceQuestion, FillInBlankQuestion, TrueFalseQuestion],
    Field(discriminator="type"),
]


class ProcessingResult(BaseModel):
    summary: str
    keywords: List[Keyword]
    topics: List[Topic]
    metadata: DocumentMetrics
    questions: List[Question]


# ----------------- Quiz -----------------

class QuizSettings(BaseModel):
    time_limit_minutes: int
    passing_score_percent: int = 60
    randomize_questions: bool = True
    show_correct_answers: bool = True
    allow_retake: bool = True


class AnswerResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    question_id: str
    user_answer: str
    correct_answer: str
    is_correct: bool
    explanation: str


class Attempt(BaseModel):
    model_config = ConfigDict(frozen=True)

    answers: List[AnswerResult]
    correct_count: int
    percentage: int
    passed: bool
    started_at: datetime
    ended_at: datetime
    completed_at: datetime = Field(default_factory=utc_now)

    @property
    def minutes_taken(self) -> float:
        return (self.ended_at - self.started_at).total_seconds() / 60


class QuizStats(BaseModel):
    total_attempts: int = 0
    best_score: int = 0
    average_score: float = 0
    average_time_minutes: float = 0


class Quiz(BaseModel):
    id: str
    title: str
    description: str = ""
    questions: List[Question]
    settings: QuizSettings
    attempts: List[Attempt] = Field(default_factory=list)
    stats: QuizStats = Field(default_factory=QuizStats)
    created_at: datetime = Field(default_factory=utc_now)

    # guards attempts and stats against concurrent submissions
    _lock = PrivateAttr(default_factory=threading.Lock)

    @property
    def lock(self) -> threading.Lock:
        return self._lock


# ----------------- Requests -----------------

class AnalyzeTextRequest(BaseModel):
    text: str
    summary_sentences: int = Field(default=3, ge=1)
    keyword_count: int = Field(default=15, ge=1)


class SummaryRequest(BaseModel):
    text: str
    length: int = Field(default=3, ge=1)
    strategy: Optional[Literal["decay", "emphasis"]] = None
    structured: bool = False


class BulkSummaryRequest(BaseModel):
    texts: List[str] = Field(min_length=1)
    length: int = Field(default=3, ge=1)


class EnrichRequest(BaseModel):
    text: str


class CorpusKeywordsRequest(BaseModel):
    texts: List[str] = Field(min_length=1)
    target: int = Field(default=0, ge=0)
    count: int = Field(default=15, ge=1)

    @model_validator(mode="after")
    def _target_in_range(self):
        if self.target >= len(self.texts):
            raise ValueError("target must index one of texts")
        return self


class QuizGenerateRequest(BaseModel):
    text: str
    title: Optional[str] = None
    question_count: int = Field(default=10, ge=1)
    difficulty: RequestedDifficulty = "all"
    types: List[QuestionType] = Field(default_factory=lambda: ["mcq"], min_length=1)
    balanced: bool = False
    randomize_questions: bool = True
    seed: Optional[int] = None


class SubmitAttemptRequest(BaseModel):
    answers: List[str]
    started_at: datetime
    ended_at: datetime

    @field_validator("started_at", "ended_at")
    @classmethod
    def _to_utc(cls, value: datetime) -> datetime:
        return as_utc(value)
