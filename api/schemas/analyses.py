"""Video analysis API schemas."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from database.models.video_analyses import ProcessingStatus


class AnalysisSubmitResponse(BaseModel):
    """Schema returned when an analysis is queued."""

    success: bool = True
    analysis_id: str
    message: str = "Analysis started successfully"


class AnalysisRecordResponse(BaseModel):
    """Stored analysis: status, progress and, once complete, the result document."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    video_id: str
    candidate_id: str
    processing_status: ProcessingStatus
    progress_percent: int = Field(ge=0, le=100)
    current_step: Optional[str] = None
    error_message: Optional[str] = None
    failed_stage: Optional[str] = None
    overall_score: Optional[int] = None
    result: Optional[dict[str, Any]] = Field(default=None, validation_alias="analysis_data")
    processing_started_at: Optional[datetime] = None
    processing_completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class AnalysisHistoryResponse(BaseModel):
    """Completed analyses of one candidate, newest first."""

    candidate_id: str
    total: int
    items: list[AnalysisRecordResponse]
