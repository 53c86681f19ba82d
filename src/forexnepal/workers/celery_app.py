from celery import Celery

from forexnepal.config import settings

celery_app = Celery("forexnepal", broker=settings.redis_url, backend=settings.redis_url)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    imports=["forexnepal.workers.tasks"],
    beat_schedule={
        "prune-usage-logs-hourly": {
            "task": "prune_usage_logs",
            "schedule": 3600.0,
        },
    },
)
