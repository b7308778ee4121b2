"""
Database access for analysis runs and the worker queue.

Every method opens its own session from the injected ``async_sessionmaker``
and commits before returning. Database failures surface as
``PersistenceError``.
"""

import logging
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.exceptions import PersistenceError
from core.utils.datetime import now
from database.models.video_analyses import (
    AnalysisQueue,
    ProcessingStatus,
    QueueStatus,
    VideoAnalysis,
)
from pipeline.schemas import AnalysisRequest, VideoAnalysisResult

logger = logging.getLogger(__name__)


def new_analysis_id() -> str:
    """Unique id for one analysis run."""
    return f"analysis_{uuid.uuid4().hex}"


class AnalysisRepository:
    """Reads and writes ``video_analyses`` and ``analysis_queue`` rows."""

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]):
        self.sessionmaker = sessionmaker

    async def save_result(self, result: VideoAnalysisResult) -> str:
        """
        Store a completed analysis.

        Updates the pre-created row with the same id when one exists (queued
        path) and inserts a new row otherwise. Queue entries for the row are
        marked completed in the same transaction.

        Args:
            result: Completed analysis

        Returns:
            Id of the stored row

        Raises:
            PersistenceError: The write failed
        """
        wire = result.to_wire()
        completed_at = now()
        try:
            async with self.sessionmaker() as session:
                row = await session.get(VideoAnalysis, result.id)
                if row is None:
                    row = VideoAnalysis(
                        id=result.id,
                        video_id=result.video_id,
                        candidate_id=result.candidate_id,
                    )
                    session.add(row)

                row.analysis_data = wire
                row.skills_detected = wire["technicalSkills"]
                row.traits_assessment = [skill["traits"] for skill in wire["technicalSkills"]]
                row.confidence_scores = wire["categoryScores"]
                row.overall_score = result.overall_score
                row.processing_status = ProcessingStatus.COMPLETED
                row.progress_percent = 100
                row.error_message = None
                row.failed_stage = None
                row.processing_completed_at = completed_at

                await session.execute(
                    update(AnalysisQueue)
                    .where(AnalysisQueue.video_analysis_id == result.id)
                    .values(status=QueueStatus.COMPLETED, completed_at=completed_at)
                )
                await session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to save analysis {result.id}: {e}")
            raise PersistenceError(f"Failed to save analysis results: {e}", cause=e) from e

        logger.info(f"Saved analysis {result.id} for candidate {result.candidate_id}")
        return result.id

    async def create_pending(
        self,
        request: AnalysisRequest,
        priority: int = 5,
        scheduled_for: Optional[datetime] = None,
    ) -> VideoAnalysis:
        """Create a pending analysis row and its queue entry."""
        analysis_id = new_analysis_id()
        try:
            async with self.sessionmaker() as session:
                row = VideoAnalysis(
                    id=analysis_id,
                    video_id=request.video_id or request.video_metadata.owner_id,
                    candidate_id=request.video_metadata.owner_id,
                    request_data=request.model_dump(by_alias=True, mode="json"),
                    processing_status=ProcessingStatus.PENDING,
                    progress_percent=0,
                )
                session.add(row)
                await session.flush()
                session.add(
                    AnalysisQueue(
                        video_analysis_id=analysis_id,
                        priority=priority,
                        status=QueueStatus.PENDING,
                        scheduled_for=scheduled_for or now(),
                        attempts=0,
                    )
                )
                await session.commit()
                await session.refresh(row)
        except SQLAlchemyError as e:
            logger.error(f"Failed to create analysis record: {e}")
            raise PersistenceError(f"Failed to create analysis record: {e}", cause=e) from e

        logger.info(f"Queued analysis {analysis_id} with priority {priority}")
        return row

    async def mark_processing(self, analysis_id: str) -> None:
        await self._update(
            analysis_id,
            processing_status=ProcessingStatus.PROCESSING,
            processing_started_at=now(),
            error_message=None,
            failed_stage=None,
        )

    async def update_progress(self, analysis_id: str, percent_complete: int, step_label: str) -> None:
        await self._update(
            analysis_id,
            progress_percent=percent_complete,
            current_step=step_label,
        )

    async def mark_failed(
        self, analysis_id: str, message: str, failed_stage: Optional[str] = None
    ) -> None:
        """Record a failed run on the analysis row and its queue entries."""
        failed_at = now()
        try:
            async with self.sessionmaker() as session:
                await session.execute(
                    update(VideoAnalysis)
                    .where(VideoAnalysis.id == analysis_id)
                    .values(
                        processing_status=ProcessingStatus.FAILED,
                        error_message=message,
                        failed_stage=failed_stage,
                        processing_completed_at=failed_at,
                    )
                )
                await session.execute(
                    update(AnalysisQueue)
                    .where(AnalysisQueue.video_analysis_id == analysis_id)
                    .values(
                        status=QueueStatus.FAILED,
                        error_details={
                            "message": message,
                            "stage": failed_stage,
                            "timestamp": failed_at.isoformat(),
                        },
                    )
                )
                await session.commit()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to mark analysis {analysis_id} failed: {e}", cause=e) from e

    async def get(self, analysis_id: str) -> Optional[VideoAnalysis]:
        try:
            async with self.sessionmaker() as session:
                return await session.get(VideoAnalysis, analysis_id)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to load analysis {analysis_id}: {e}", cause=e) from e

    async def list_for_candidate(self, candidate_id: str, limit: int = 50) -> list[VideoAnalysis]:
        """Completed analyses of a candidate, newest first."""
        stmt = (
            select(VideoAnalysis)
            .where(
                VideoAnalysis.candidate_id == candidate_id,
                VideoAnalysis.processing_status == ProcessingStatus.COMPLETED,
            )
            .order_by(VideoAnalysis.created_at.desc(), VideoAnalysis.processing_completed_at.desc())
            .limit(limit)
        )
        try:
            async with self.sessionmaker() as session:
                result = await session.execute(stmt)
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to load analysis history: {e}", cause=e) from e

    async def claim_due_entries(self, limit: int = 10) -> list[str]:
        """
        Claim pending queue entries that are due.

        Entries are taken by descending priority, then earliest schedule, and
        flipped to ``processing`` with their attempt count incremented.

        Returns:
            Analysis ids to dispatch
        """
        stmt = (
            select(AnalysisQueue)
            .where(
                AnalysisQueue.status == QueueStatus.PENDING,
                AnalysisQueue.scheduled_for <= now(),
            )
            .order_by(AnalysisQueue.priority.desc(), AnalysisQueue.scheduled_for.asc())
            .limit(limit)
        )
        try:
            async with self.sessionmaker() as session:
                result = await session.execute(stmt)
                entries = list(result.scalars().all())
                for entry in entries:
                    entry.status = QueueStatus.PROCESSING
                    entry.attempts += 1
                await session.commit()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to claim queue entries: {e}", cause=e) from e

        return [entry.video_analysis_id for entry in entries]

    async def mark_dispatched(self, analysis_id: str) -> None:
        """Flag the queue entry of an analysis handed straight to a worker."""
        try:
            async with self.sessionmaker() as session:
                await session.execute(
                    update(AnalysisQueue)
                    .where(
                        AnalysisQueue.video_analysis_id == analysis_id,
                        AnalysisQueue.status == QueueStatus.PENDING,
                    )
                    .values(status=QueueStatus.PROCESSING, attempts=AnalysisQueue.attempts + 1)
                )
                await session.commit()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to update queue entry for {analysis_id}: {e}", cause=e) from e

    async def _update(self, analysis_id: str, **values) -> None:
        try:
            async with self.sessionmaker() as session:
                await session.execute(
                    update(VideoAnalysis).where(VideoAnalysis.id == analysis_id).values(**values)
                )
                await session.commit()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to update analysis {analysis_id}: {e}", cause=e) from e
