"""Video analysis tasks."""

import asyncio
import logging
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from core.config import settings
from core.exceptions import AnalysisError, ValidationError
from database.engine import build_engine, build_sessionmaker
from database.models.video_analyses import ProcessingStatus
from pipeline.orchestrator import AnalysisPipeline, build_pipeline
from pipeline.persistence import AnalysisRepository
from pipeline.progress import ProgressTracker
from pipeline.schemas import AnalysisRequest
from pipeline.states import PipelineState
from workers.celery_app import celery_app

logger = logging.getLogger(__name__)


async def execute_analysis(
    analysis_id: str,
    request_data: Optional[dict[str, Any]],
    pipeline: AnalysisPipeline,
) -> dict:
    """
    Run the pipeline for a pre-created analysis row.

    Progress is mirrored into the row as it happens. Failures are recorded on
    the row and its queue entry instead of being raised.

    Args:
        analysis_id: Id of the pending ``video_analyses`` row
        request_data: Wire-form request; the stored request is used if None
        pipeline: Pipeline whose repository owns the row

    Returns:
        Task summary with status
    """
    repository = pipeline.repository
    record = await repository.get(analysis_id)
    if record is None:
        logger.error(f"Analysis {analysis_id} not found, nothing to run")
        return {"status": "missing", "analysis_id": analysis_id}
    if record.processing_status == ProcessingStatus.COMPLETED:
        logger.info(f"Analysis {analysis_id} already completed, skipping")
        return {"status": "skipped", "analysis_id": analysis_id}

    try:
        request = AnalysisRequest.model_validate(request_data or record.request_data or {})
    except PydanticValidationError as e:
        message = f"Invalid analysis request: {e.error_count()} validation error(s)"
        logger.error(f"{message} for {analysis_id}: {e}")
        await repository.mark_failed(analysis_id, message, PipelineState.VALIDATING.value)
        return {"status": "failed", "analysis_id": analysis_id, "error": message}

    await repository.mark_processing(analysis_id)

    async def mirror_progress(percent_complete: int, step_label: str) -> None:
        await repository.update_progress(analysis_id, percent_complete, step_label)

    try:
        result = await pipeline.run(
            request,
            progress=ProgressTracker(callback=mirror_progress),
            analysis_id=analysis_id,
        )
    except AnalysisError as e:
        await repository.mark_failed(analysis_id, e.message, e.failed_state)
        return {
            "status": "failed",
            "analysis_id": analysis_id,
            "error": e.message,
            "kind": e.kind,
            "failed_stage": e.failed_state,
            "processing_time_seconds": e.processing_time_seconds,
        }

    return {
        "status": "success",
        "analysis_id": result.id,
        "overall_score": result.overall_score,
        "processing_time_seconds": result.processing_time_seconds,
        "degraded_stages": list(result.degraded_stages),
    }


async def _run_video_analysis(analysis_id: str, request_data: Optional[dict]) -> dict:
    engine = build_engine(settings)
    try:
        sessionmaker = build_sessionmaker(engine)
        try:
            pipeline = build_pipeline(settings, sessionmaker)
        except ValidationError as e:
            await AnalysisRepository(sessionmaker).mark_failed(
                analysis_id, e.message, e.failed_state
            )
            return {"status": "failed", "analysis_id": analysis_id, "error": e.message}
        return await execute_analysis(analysis_id, request_data, pipeline)
    finally:
        await engine.dispose()


async def _claim_due_entries(limit: int) -> list[str]:
    engine = build_engine(settings)
    try:
        return await AnalysisRepository(build_sessionmaker(engine)).claim_due_entries(limit)
    finally:
        await engine.dispose()


@celery_app.task(name="workers.tasks.analyses.run_video_analysis")
def run_video_analysis(analysis_id: str, request_data: Optional[dict] = None) -> dict:
    """
    Analyze a queued video.

    Not retried automatically: a rerun is a new analysis.

    Args:
        analysis_id: Id of the pending analysis row
        request_data: Wire-form ``AnalysisRequest`` (camelCase keys)

    Returns:
        Task summary with status
    """
    logger.info(f"Running video analysis {analysis_id}")
    return asyncio.run(_run_video_analysis(analysis_id, request_data))


@celery_app.task(name="workers.tasks.analyses.process_analysis_queue")
def process_analysis_queue(limit: int = 10) -> dict:
    """
    Dispatch due queue entries, highest priority first.

    Args:
        limit: Maximum number of entries to claim

    Returns:
        Number and ids of dispatched analyses
    """
    analysis_ids = asyncio.run(_claim_due_entries(limit))
    for analysis_id in analysis_ids:
        run_video_analysis.delay(analysis_id)

    if analysis_ids:
        logger.info(f"Dispatched {len(analysis_ids)} queued analyses")
    return {"status": "success", "dispatched": len(analysis_ids), "analysis_ids": analysis_ids}
