"""
Quiz assembly, grading and attempt statistics.
"""
import threading
import uuid
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

import structlog

from studyai.config import get_settings
from studyai.schemas import (
    AnswerResult,
    Attempt,
    MultipleChoiceQuestion,
    Question,
    Quiz,
    QuizSettings,
    QuizStats,
    as_utc,
)
from studyai.services.monitoring import ACTIVE_QUIZZES

logger = structlog.get_logger()


def create_quiz(questions: Sequence[Question], requested_count: int, title: str = "Quiz",
                description: str = "", randomize_questions: bool = True) -> Quiz:
    settings = get_settings()
    return Quiz(
        id=uuid.uuid4().hex,
        title=title,
        description=description,
        questions=list(questions),
        settings=QuizSettings(
            time_limit_minutes=requested_count * settings.MINUTES_PER_QUESTION,
            passing_score_percent=settings.PASSING_SCORE_PERCENT,
            randomize_questions=randomize_questions,
        ),
    )


def public_view(quiz: Quiz) -> dict:
    """Quiz as shown to someone taking it: no answer key, no explanations."""
    questions = []
    for q in quiz.questions:
        item = {"id": q.id, "type": q.type, "prompt": q.prompt, "topic": q.topic, "difficulty": q.difficulty}
        if isinstance(q, MultipleChoiceQuestion):
            item["options"] = [{"text": opt.text} for opt in q.options]
        questions.append(item)
    return {
        "id": quiz.id,
        "title": quiz.title,
        "description": quiz.description,
        "created_at": quiz.created_at.isoformat(),
        "settings": quiz.settings.model_dump(),
        "stats": quiz.stats.model_dump(),
        "questions": questions,
    }


# -------------------- GRADING --------------------

def correct_answer_text(question: Question) -> str:
    if isinstance(question, MultipleChoiceQuestion):
        return question.correct_option().text
    return question.correct_answer


def grade_answer(question: Question, answer: Optional[str]) -> bool:
    given = (answer or "").strip().lower()
    if not given:
        return False
    if question.type == "fill-in-blank":
        accepted = {a.strip().lower() for a in [question.correct_answer, *question.accepted_answers]}
        return given in accepted
    return given == correct_answer_text(question).strip().lower()


def _update_stats(stats: QuizStats, attempt: Attempt) -> None:
    n = stats.total_attempts + 1
    stats.best_score = max(stats.best_score, attempt.percentage)
    stats.average_score = (stats.average_score * (n - 1) + attempt.percentage) / n
    stats.average_time_minutes = (stats.average_time_minutes * (n - 1) + attempt.minutes_taken) / n
    stats.total_attempts = n


def submit_attempt(quiz: Quiz, answers: Sequence[str], started_at: datetime,
                   ended_at: datetime) -> Attempt:
    """Grade answers (by question position), append the attempt and refresh stats."""
    started_at, ended_at = as_utc(started_at), as_utc(ended_at)
    if ended_at < started_at:
        raise ValueError("ended_at must not be before started_at")

    results: List[AnswerResult] = []
    for i, question in enumerate(quiz.questions):
        answer = answers[i] if i < len(answers) else ""
        results.append(AnswerResult(
            question_id=question.id,
            user_answer=answer or "",
            correct_answer=correct_answer_text(question),
            is_correct=grade_answer(question, answer),
            explanation=question.explanation,
        ))

    correct = sum(1 for r in results if r.is_correct)
    percentage = round(correct / len(results) * 100) if results else 0
    attempt = Attempt(
        answers=results,
        correct_count=correct,
        percentage=percentage,
        passed=percentage >= quiz.settings.passing_score_percent,
        started_at=started_at,
        ended_at=ended_at,
    )
    with quiz.lock:
        if quiz.attempts and not quiz.settings.allow_retake:
            raise ValueError("quiz does not allow retakes")
        quiz.attempts.append(attempt)
        _update_stats(quiz.stats, attempt)
        total_attempts = quiz.stats.total_attempts
    logger.info("quiz_attempt_recorded", quiz_id=quiz.id, percentage=percentage, attempts=total_attempts)
    return attempt


# -------------------- REGISTRY --------------------

class QuizRegistry:
    """Process-local quiz store capped at ``max_size``; the oldest quiz goes first."""

    def __init__(self, max_size: Optional[int] = None):
        self.max_size = max_size
        self._quizzes: Dict[str, Quiz] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._quizzes)

    def _capacity(self) -> int:
        return self.max_size if self.max_size is not None else get_settings().MAX_QUIZZES

    def add(self, quiz: Quiz) -> Quiz:
        with self._lock:
            self._quizzes[quiz.id] = quiz
            while len(self._quizzes) > self._capacity():
                evicted = next(iter(self._quizzes))
                del self._quizzes[evicted]
                logger.info("quiz_evicted", quiz_id=evicted)
            ACTIVE_QUIZZES.set(len(self._quizzes))
        return quiz

    def get(self, quiz_id: str) -> Optional[Quiz]:
        return self._quizzes.get(quiz_id)

    def page(self, page: int = 1, limit: int = 10) -> Tuple[List[Quiz], int]:
        """Quizzes newest first, one page at a time, with the total count."""
        with self._lock:
            ordered = list(self._quizzes.values())
        # insertion order breaks created_at ties
        ordered = [q for _, q in sorted(enumerate(ordered), key=lambda p: (p[1].created_at, p[0]), reverse=True)]
        start = (page - 1) * limit
        return ordered[start:start + limit], len(ordered)

    def clear(self) -> None:
        with self._lock:
            self._quizzes.clear()
            ACTIVE_QUIZZES.set(0)


# Global registry instance
quizzes = QuizRegistry()
