"""
Video analysis storage.

- VideoAnalysis: one row per analysis run, holding status, progress and the
  full result document
- AnalysisQueue: scheduling entries for the background worker
"""

from datetime import datetime
from enum import Enum as PyEnum
from typing import Any

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from database.engine import Base


# ==================== Enums ===================== #
class ProcessingStatus(str, PyEnum):
    """Lifecycle of an analysis row."""

    PENDING = "pending"  # Created, waiting for a worker
    PROCESSING = "processing"  # Pipeline running
    COMPLETED = "completed"  # Result stored
    FAILED = "failed"  # Run aborted, see error_message


class QueueStatus(str, PyEnum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


# ==================== Models ===================== #
class VideoAnalysis(Base):
    """
    Analysis of one candidate video.

    ``analysis_data`` holds the full camelCase result document. The skills,
    traits and confidence columns are denormalized copies for querying.
    """

    __tablename__: str = "video_analyses"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    video_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    candidate_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    # Request as submitted, replayed by the queue worker
    request_data: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    # Result
    analysis_data: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    skills_detected: Mapped[list[dict[str, Any]] | None] = mapped_column(
        JSON, nullable=True, comment="Detected technical skill assessments"
    )
    traits_assessment: Mapped[list[dict[str, Any]] | None] = mapped_column(
        JSON, nullable=True, comment="Proficiency traits per detected skill"
    )
    confidence_scores: Mapped[dict[str, Any] | None] = mapped_column(
        JSON, nullable=True, comment="Per-category scores"
    )
    overall_score: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Processing
    processing_status: Mapped[ProcessingStatus] = mapped_column(
        String(20), default=ProcessingStatus.PENDING, nullable=False
    )
    progress_percent: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    current_step: Mapped[str | None] = mapped_column(String(255), nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    failed_stage: Mapped[str | None] = mapped_column(String(50), nullable=True)
    processing_started_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    processing_completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        Index("idx_video_analyses_status_created", "processing_status", "created_at"),
    )


class AnalysisQueue(Base):
    """Pending work for the analysis worker. Higher priority runs first, then earlier schedule."""

    __tablename__: str = "analysis_queue"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    video_analysis_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("video_analyses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    priority: Mapped[int] = mapped_column(Integer, default=5, nullable=False)
    status: Mapped[QueueStatus] = mapped_column(
        String(20), default=QueueStatus.PENDING, nullable=False
    )
    scheduled_for: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    attempts: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    error_details: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("idx_analysis_queue_status_priority", "status", "priority", "scheduled_for"),
    )
