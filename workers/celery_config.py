"""Celery configuration for background video analysis."""

from kombu import Exchange, Queue

from core.config import settings

# Broker configuration (Redis)
broker_url = settings.celery_broker_url
result_backend = settings.celery_result_backend

# Task routing and serialization
task_serializer = "json"
accept_content = ["json"]
result_serializer = "json"
timezone = "UTC"
enable_utc = True

# Task execution settings
task_track_started = True
task_time_limit = 30 * 60  # 30 minutes hard limit
task_soft_time_limit = 25 * 60  # 25 minutes soft limit

# Worker settings
worker_prefetch_multiplier = 1
worker_max_tasks_per_child = 200

# Queue configuration with routing
default_exchange = Exchange("reelcv", type="direct")
default_queue_name = "default"
task_queues = (
    Queue("default", exchange=default_exchange, routing_key="default"),
    Queue("analysis", exchange=default_exchange, routing_key="analysis"),
)

# Task routing
task_routes = {
    "workers.tasks.analyses.*": {"queue": "analysis"},
}

# Periodic sweep of analyses that were queued but never dispatched
beat_schedule = {
    "process-analysis-queue": {
        "task": "workers.tasks.analyses.process_analysis_queue",
        "schedule": 60.0,
        "kwargs": {"limit": 10},
    },
}

# Result backend settings
result_expires = 3600  # Results expire after 1 hour
