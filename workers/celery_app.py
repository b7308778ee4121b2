"""Celery app factory."""

from celery import Celery

celery_app = Celery("reelcv", include=["workers.tasks.analyses"])
celery_app.config_from_object("workers.celery_config")
