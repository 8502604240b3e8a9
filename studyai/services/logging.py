"""
Structured logging configuration
"""
import functools
import logging
import sys
import time

import structlog


def configure_logging(level: int = logging.INFO):
    """Configure structlog on top of stdlib logging, JSON to stdout"""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    # the remote model client logs every HTTP call at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)


def log_performance(stage: str):
    """Decorator logging duration and outcome of an analysis pipeline stage"""
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            logger = structlog.get_logger("pipeline").bind(stage=stage)
            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                logger.error("stage_failed", duration_seconds=time.perf_counter() - start,
                             error=str(e), error_type=type(e).__name__)
                raise
            logger.info("stage_completed", duration_seconds=time.perf_counter() - start)
            return result
        return wrapper
    return decorator


def log_api_request(request, response=None, error=None):
    """Log an API request when it starts, completes, or fails with an unhandled error"""
    logger = structlog.get_logger("api").bind(
        method=request.method,
        path=request.url.path,
        client_ip=request.client.host if request.client else "unknown",
    )
    if error is not None:
        logger.error("api_request_failed", error=str(error), error_type=type(error).__name__,
                     status_code=500)
    elif response is not None:
        logger.info("api_request_completed", status_code=response.status_code,
                    response_time=getattr(response, "response_time", None))
    else:
        logger.info("api_request_started")
