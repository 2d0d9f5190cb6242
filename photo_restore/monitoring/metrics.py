"""Prometheus metrics for the photo library and restoration pipeline"""

import logging
from prometheus_client import Counter, Histogram

logger = logging.getLogger(__name__)


# Upload metrics
photo_uploads_total = Counter(
    'photo_uploads_total',
    'Total number of photo uploads',
    ['source', 'status']
)

# Job metrics
enhancement_jobs_total = Counter(
    'enhancement_jobs_total',
    'Enhancement jobs that reached a terminal state',
    ['status']
)

# Model metrics
model_requests_total = Counter(
    'model_requests_total',
    'Total number of restoration model requests',
    ['model', 'outcome']
)

model_request_duration_seconds = Histogram(
    'model_request_duration_seconds',
    'Time spent waiting on the restoration model',
    ['model'],
    buckets=[1.0, 2.5, 5.0, 10.0, 20.0, 30.0, 60.0, 120.0]
)

# Rate limiting
rate_limit_rejections_total = Counter(
    'rate_limit_rejections_total',
    'Requests rejected by the per-IP rate limiter',
    ['scope']
)


class MetricsCollector:
    """Thin recording facade so call sites stay one line"""

    def record_upload(self, source: str, status: str):
        photo_uploads_total.labels(source=source, status=status).inc()

    def record_job_finished(self, status: str):
        enhancement_jobs_total.labels(status=status).inc()

    def record_model_request(self, model: str, outcome: str, duration_seconds: float):
        model_requests_total.labels(model=model, outcome=outcome).inc()
        model_request_duration_seconds.labels(model=model).observe(duration_seconds)

    def record_rate_limited(self, scope: str):
        rate_limit_rejections_total.labels(scope=scope).inc()


# Global metrics collector instance
metrics_collector = MetricsCollector()
