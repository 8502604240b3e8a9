import time

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from studyai.config import get_settings
from studyai.middleware.rate_limit import limiter
from studyai.routers import analysis as analysis_router
from studyai.routers import quiz as quiz_router
from studyai.services.logging import configure_logging, log_api_request
from studyai.services.monitoring import REQUEST_COUNT, REQUEST_DURATION, get_metrics, health_checker

# Configure logging
configure_logging()
logger = structlog.get_logger()

settings = get_settings()

app = FastAPI(
    title=settings.APP_NAME,
    description="Study document summaries, keywords, topics and auto-generated quizzes",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


# Add middleware for request logging and metrics
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start_time = time.time()

    log_api_request(request)

    try:
        response = await call_next(request)
    except Exception as e:
        REQUEST_COUNT.labels(method=request.method, endpoint=request.url.path, status=500).inc()
        log_api_request(request, error=e)
        raise

    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)

    REQUEST_COUNT.labels(
        method=request.method,
        endpoint=request.url.path,
        status=response.status_code
    ).inc()

    REQUEST_DURATION.labels(
        method=request.method,
        endpoint=request.url.path
    ).observe(process_time)

    response.response_time = process_time
    log_api_request(request, response)

    return response


# ----------------- Health & Monitoring Endpoints -----------------
@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return health_checker.get_health_status()


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint"""
    return get_metrics()


@app.get("/")
async def root():
    return {"message": settings.APP_NAME, "version": app.version}


# ----------------- Routers -----------------
app.include_router(analysis_router.router)
app.include_router(quiz_router.router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("studyai.main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
