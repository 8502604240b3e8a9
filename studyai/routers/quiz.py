import math
import random

from fastapi import APIRouter, HTTPException, Query

from studyai.schemas import QuizGenerateRequest, SubmitAttemptRequest
from studyai.services.monitoring import QUESTIONS_GENERATED
from studyai.services.pipeline import process
from studyai.services.quiz import create_quiz, public_view, quizzes, submit_attempt

router = APIRouter(prefix="/quiz", tags=["quiz"])


def _get_quiz(quiz_id: str):
    quiz = quizzes.get(quiz_id)
    if quiz is None:
        raise HTTPException(status_code=404, detail="Quiz not found")
    return quiz


@router.post("/generate", status_code=201)
def generate_quiz(body: QuizGenerateRequest):
    result = process(
        body.text,
        question_count=body.question_count,
        difficulty=body.difficulty,
        types=body.types,
        rng=random.Random(body.seed) if body.seed is not None else None,
        balanced=body.balanced,
        randomize=body.randomize_questions,
    )
    questions = result.questions
    for q in questions:
        QUESTIONS_GENERATED.labels(type=q.type).inc()

    quiz = quizzes.add(create_quiz(
        questions,
        requested_count=body.question_count,
        title=body.title or "Quiz from document",
        description=result.summary,
        randomize_questions=body.randomize_questions,
    ))
    return {
        "quiz_id": quiz.id,
        "title": quiz.title,
        "question_count": len(questions),
        "estimated_time": quiz.settings.time_limit_minutes,
        "difficulty": body.difficulty,
        "types": body.types,
    }


@router.get("")
def list_quizzes(page: int = Query(1, ge=1), limit: int = Query(10, ge=1, le=100)):
    """Quizzes newest first, answers hidden"""
    items, total = quizzes.page(page, limit)
    return {
        "quizzes": [public_view(q) for q in items],
        "pagination": {"total": total, "page": page, "pages": math.ceil(total / limit)},
    }


@router.get("/{quiz_id}")
def get_quiz(quiz_id: str):
    return public_view(_get_quiz(quiz_id))


@router.post("/{quiz_id}/submit")
def submit_quiz(quiz_id: str, body: SubmitAttemptRequest):
    quiz = _get_quiz(quiz_id)
    try:
        attempt = submit_attempt(quiz, body.answers, body.started_at, body.ended_at)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {
        "score": attempt.correct_count,
        "total": len(quiz.questions),
        "percentage": attempt.percentage,
        "passed": attempt.passed,
        "time_taken": round(attempt.minutes_taken),
        "answers": [a.model_dump() for a in attempt.answers] if quiz.settings.show_correct_answers else [],
    }


@router.get("/{quiz_id}/stats")
def quiz_stats(quiz_id: str):
    quiz = _get_quiz(quiz_id)
    return {"quiz_id": quiz.id, **quiz.stats.model_dump()}
