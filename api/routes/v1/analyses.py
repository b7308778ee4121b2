"""Video analysis endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from kombu.exceptions import OperationalError as BrokerError

from api.dependencies import AnalysisDispatcher, get_dispatcher, get_repository
from api.schemas.analyses import (
    AnalysisHistoryResponse,
    AnalysisRecordResponse,
    AnalysisSubmitResponse,
)
from core.config import settings
from core.exceptions import ValidationError
from core.utils.validators import validate_media_location
from database.models.video_analyses import ProcessingStatus
from pipeline.persistence import AnalysisRepository
from pipeline.progress import AnalysisProgress
from pipeline.schemas import AnalysisRequest
from pipeline.states import FAILED_LABEL

logger = logging.getLogger(__name__)

router = APIRouter()

RUNNING_STATUSES = (ProcessingStatus.PENDING, ProcessingStatus.PROCESSING)


async def _get_or_404(repository: AnalysisRepository, analysis_id: str):
    record = await repository.get(analysis_id)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Analysis {analysis_id} not found",
        )
    return record


@router.post(
    "",
    response_model=AnalysisSubmitResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Queue a video analysis",
)
async def submit_analysis(
    request: AnalysisRequest,
    repository: AnalysisRepository = Depends(get_repository),
    dispatch: AnalysisDispatcher = Depends(get_dispatcher),
) -> AnalysisSubmitResponse:
    """
    Queue a video for analysis.

    Creates a pending analysis record and queue entry, then hands the work to
    a background worker. Poll ``/{analysis_id}/progress`` for status.
    """
    is_valid, error = validate_media_location(request.video_location)
    if not is_valid:
        raise ValidationError(error)

    record = await repository.create_pending(request, priority=settings.analysis_queue_priority)

    try:
        dispatch(record.id, request.model_dump(by_alias=True, mode="json"))
    except BrokerError as e:
        # Entry stays pending; the queue sweep picks it up
        logger.warning(f"Could not dispatch analysis {record.id}, left queued: {e}")
    else:
        await repository.mark_dispatched(record.id)

    return AnalysisSubmitResponse(analysis_id=record.id)


@router.get(
    "",
    response_model=AnalysisHistoryResponse,
    summary="List completed analyses of a candidate",
)
async def list_analyses(
    candidate_id: str = Query(..., min_length=1),
    limit: int = Query(default=20, ge=1, le=100),
    repository: AnalysisRepository = Depends(get_repository),
) -> AnalysisHistoryResponse:
    records = await repository.list_for_candidate(candidate_id, limit=limit)
    return AnalysisHistoryResponse(
        candidate_id=candidate_id,
        total=len(records),
        items=[AnalysisRecordResponse.model_validate(record) for record in records],
    )


@router.get(
    "/{analysis_id}",
    response_model=AnalysisRecordResponse,
    summary="Get a stored analysis",
)
async def get_analysis(
    analysis_id: str,
    repository: AnalysisRepository = Depends(get_repository),
) -> AnalysisRecordResponse:
    record = await _get_or_404(repository, analysis_id)
    return AnalysisRecordResponse.model_validate(record)


@router.get(
    "/{analysis_id}/progress",
    response_model=AnalysisProgress,
    response_model_by_alias=False,
    summary="Get analysis progress",
)
async def get_analysis_progress(
    analysis_id: str,
    repository: AnalysisRepository = Depends(get_repository),
) -> AnalysisProgress:
    """Progress surface for UI progress indicators."""
    record = await _get_or_404(repository, analysis_id)
    failed = record.processing_status == ProcessingStatus.FAILED
    return AnalysisProgress(
        is_running=record.processing_status in RUNNING_STATUSES,
        percent_complete=record.progress_percent,
        current_step_label=FAILED_LABEL if failed else (record.current_step or ""),
        error=record.error_message if failed else None,
        result=record.analysis_data
        if record.processing_status == ProcessingStatus.COMPLETED
        else None,
    )
