"""FastAPI dependencies for dependency injection."""

from typing import Callable

from fastapi import Request

from pipeline.persistence import AnalysisRepository

AnalysisDispatcher = Callable[[str, dict], None]


def get_repository(request: Request) -> AnalysisRepository:
    """Repository bound to the application's session factory."""
    return AnalysisRepository(request.app.state.sessionmaker)


def celery_dispatcher(analysis_id: str, request_data: dict) -> None:
    """Hand an analysis to the Celery worker."""
    from workers.tasks.analyses import run_video_analysis

    run_video_analysis.delay(analysis_id, request_data)


def get_dispatcher(request: Request) -> AnalysisDispatcher:
    return getattr(request.app.state, "dispatcher", celery_dispatcher)
