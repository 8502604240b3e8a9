import random

from fastapi import APIRouter, File, Form, HTTPException, Request, UploadFile

from studyai.config import get_settings
from studyai.middleware.rate_limit import analysis_limit, enrichment_limit
from studyai.schemas import (
    AnalyzeTextRequest,
    BulkSummaryRequest,
    CorpusKeywordsRequest,
    DocumentAnalysis,
    EnrichRequest,
    Enrichment,
    ProcessingResult,
    QuizGenerateRequest,
    SummaryRequest,
)
from studyai.services import pipeline
from studyai.services.difficulty import reading_time_minutes
from studyai.services.extraction import UnsupportedDocument, extract_text
from studyai.services.keywords import extract_keywords, extract_topics
from studyai.services.llm import enrich
from studyai.services.summarizer import structured_summary, summarize_text
from studyai.services.text import segment

router = APIRouter(prefix="/analysis", tags=["analysis"])


@router.post("/text", response_model=DocumentAnalysis)
def analyze_text(body: AnalyzeTextRequest):
    return pipeline.analyze_document(body.text, summary_sentences=body.summary_sentences,
                                     keyword_count=body.keyword_count)


@router.post("/upload")
async def analyze_upload(file: UploadFile = File(...), summary_sentences: int = Form(3)):
    """Extract text from a PDF/TXT upload and analyze it"""
    settings = get_settings()
    if summary_sentences < 1:
        raise HTTPException(status_code=422, detail="summary_sentences must be >= 1")
    content = await file.read()
    if len(content) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="File too large")
    try:
        text = extract_text(file.filename, content)
    except UnsupportedDocument as e:
        raise HTTPException(status_code=400, detail=str(e))
    analysis = pipeline.analyze_document(text, summary_sentences=summary_sentences)
    return {"filename": file.filename, "chars": len(text), "analysis": analysis.model_dump()}


@router.post("/summary")
def summary(body: SummaryRequest):
    """Re-summarize at a requested length, or build the structured study summary"""
    settings = get_settings()
    if body.structured:
        keywords = extract_keywords(body.text, settings.DEFAULT_KEYWORD_COUNT)
        topics = extract_topics(keywords, strategy=settings.TOPIC_GROUPING_STRATEGY,
                                max_topics=settings.MAX_TOPICS)
        return {"summary": structured_summary(body.text, keywords, topics), "structured": True}

    result = summarize_text(body.text, body.length,
                            strategy=body.strategy or settings.SUMMARY_POSITION_STRATEGY)
    return {
        "summary": result.text,
        "original_length": len(segment(body.text)),
        "summary_length": result.sentence_count,
        "compression_ratio": result.compression_ratio,
        "reading_time": reading_time_minutes(len(result.text.split())),
        "structured": False,
    }


@router.post("/summary/bulk")
def bulk_summary(body: BulkSummaryRequest):
    result = pipeline.bulk_summary(body.texts, body.length)
    return {"source_count": len(body.texts), **result.model_dump()}


@router.post("/keywords/corpus")
def corpus_keywords(body: CorpusKeywordsRequest):
    """Keywords of one text scored by TF-IDF against the rest"""
    keywords = pipeline.corpus_keywords(body.texts, target=body.target, n=body.count)
    return {"target": body.target, "keywords": [k.model_dump() for k in keywords]}


@router.post("/process", response_model=ProcessingResult)
@analysis_limit()
def process(request: Request, body: QuizGenerateRequest):
    """Summary, keywords, topics, metadata and questions in one pass"""
    rng = random.Random(body.seed) if body.seed is not None else None
    return pipeline.process(
        body.text,
        question_count=body.question_count,
        difficulty=body.difficulty,
        types=body.types,
        rng=rng,
        balanced=body.balanced,
        randomize=body.randomize_questions,
    )


@router.post("/enrich", response_model=Enrichment)
@enrichment_limit()
async def enrich_text(request: Request, body: EnrichRequest):
    """Remote-model enrichment; silently served by the local pipeline when unavailable"""
    return await enrich(body.text)
