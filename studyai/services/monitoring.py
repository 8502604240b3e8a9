"""
Health checks and monitoring with Prometheus metrics
"""
import time

import psutil
import structlog
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest

from studyai.config import get_settings

logger = structlog.get_logger()

# Prometheus metrics
REQUEST_COUNT = Counter('http_requests_total', 'Total HTTP requests', ['method', 'endpoint', 'status'])
REQUEST_DURATION = Histogram('http_request_duration_seconds', 'HTTP request duration', ['method', 'endpoint'])
ENRICHMENT_REQUESTS = Counter('enrichment_requests_total', 'Document enrichment requests', ['outcome'])
QUESTIONS_GENERATED = Counter('questions_generated_total', 'Generated quiz questions', ['type'])
ACTIVE_QUIZZES = Gauge('active_quizzes', 'Quizzes held in the registry')


class HealthChecker:
    def __init__(self):
        self.start_time = time.time()

    def check_enrichment(self) -> dict:
        """Remote enrichment is optional; without it the local pipeline serves every request"""
        settings = get_settings()
        if settings.ENRICHMENT_ENABLED and settings.OPENAI_API_KEY:
            return {"status": "healthy", "mode": "llm", "model": settings.OPENAI_MODEL}
        return {"status": "healthy", "mode": "local"}

    def get_system_metrics(self) -> dict:
        """Get system resource metrics"""
        try:
            memory = psutil.virtual_memory()
            return {
                "cpu_percent": psutil.cpu_percent(interval=None),
                "memory_percent": memory.percent,
                "memory_available_gb": round(memory.available / (1024**3), 2),
                "uptime_seconds": time.time() - self.start_time
            }
        except Exception as e:
            logger.error("system_metrics_failed", error=str(e))
            return {"error": str(e)}

    def get_health_status(self) -> dict:
        checks = {
            "enrichment": self.check_enrichment(),
        }
        unhealthy_checks = [name for name, check in checks.items() if check["status"] == "unhealthy"]
        return {
            "status": "healthy" if not unhealthy_checks else "unhealthy",
            "timestamp": time.time(),
            "checks": checks,
            "system_metrics": self.get_system_metrics(),
            "unhealthy_components": unhealthy_checks
        }


# Global health checker instance
health_checker = HealthChecker()


def get_metrics():
    """Get Prometheus metrics"""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
