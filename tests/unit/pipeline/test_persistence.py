"""Tests for analysis persistence against SQLite."""

from datetime import timedelta
from unittest.mock import MagicMock

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from conftest import make_result
from core.exceptions import PersistenceError
from core.utils.datetime import now
from database.models.video_analyses import AnalysisQueue, ProcessingStatus, QueueStatus
from pipeline.persistence import AnalysisRepository, new_analysis_id


@pytest.fixture
def repository(sessionmaker) -> AnalysisRepository:
    return AnalysisRepository(sessionmaker)


async def _queue_entries(sessionmaker, analysis_id: str) -> list[AnalysisQueue]:
    async with sessionmaker() as session:
        result = await session.execute(
            select(AnalysisQueue).where(AnalysisQueue.video_analysis_id == analysis_id)
        )
        return list(result.scalars().all())


def test_new_analysis_ids_are_unique():
    ids = {new_analysis_id() for _ in range(100)}

    assert len(ids) == 100
    assert all(analysis_id.startswith("analysis_") for analysis_id in ids)


class TestSaveResult:
    """Storing completed analyses."""

    @pytest.mark.asyncio
    async def test_inserts_new_row(self, repository):
        result = make_result("analysis_direct")

        await repository.save_result(result)

        row = await repository.get("analysis_direct")
        assert row.processing_status == ProcessingStatus.COMPLETED
        assert row.progress_percent == 100
        assert row.overall_score == result.overall_score
        assert row.analysis_data == result.to_wire()
        assert row.skills_detected[0]["skill"] == "JavaScript"
        assert row.traits_assessment[0]["proficiency"] == "advanced"
        assert row.confidence_scores == result.category_scores.model_dump(by_alias=True)

    @pytest.mark.asyncio
    async def test_updates_pending_row_and_completes_queue_entry(self, repository, sessionmaker, analysis_request):
        pending = await repository.create_pending(analysis_request)

        await repository.save_result(make_result(pending.id))

        row = await repository.get(pending.id)
        assert row.processing_status == ProcessingStatus.COMPLETED
        assert row.request_data["videoUrl"] == analysis_request.video_location
        entries = await _queue_entries(sessionmaker, pending.id)
        assert [entry.status for entry in entries] == [QueueStatus.COMPLETED]
        assert entries[0].completed_at is not None

    @pytest.mark.asyncio
    async def test_database_error_raises_persistence_error(self):
        broken = MagicMock(side_effect=OperationalError("connect", None, Exception("refused")))

        with pytest.raises(PersistenceError) as exc_info:
            await AnalysisRepository(broken).save_result(make_result())

        assert isinstance(exc_info.value.__cause__, OperationalError)


class TestQueuedPath:
    """Pending rows, progress mirroring and failure recording."""

    @pytest.mark.asyncio
    async def test_create_pending(self, repository, sessionmaker, analysis_request):
        row = await repository.create_pending(analysis_request, priority=7)

        assert row.processing_status == ProcessingStatus.PENDING
        assert row.progress_percent == 0
        assert row.video_id == "video_123"
        assert row.candidate_id == "candidate_42"
        assert row.created_at is not None

        entries = await _queue_entries(sessionmaker, row.id)
        assert len(entries) == 1
        assert entries[0].priority == 7
        assert entries[0].status == QueueStatus.PENDING
        assert entries[0].attempts == 0

    @pytest.mark.asyncio
    async def test_progress_is_mirrored(self, repository, analysis_request):
        row = await repository.create_pending(analysis_request)

        await repository.mark_processing(row.id)
        await repository.update_progress(row.id, 30, "Transcribing audio...")

        stored = await repository.get(row.id)
        assert stored.processing_status == ProcessingStatus.PROCESSING
        assert stored.processing_started_at is not None
        assert stored.progress_percent == 30
        assert stored.current_step == "Transcribing audio..."

    @pytest.mark.asyncio
    async def test_mark_failed(self, repository, sessionmaker, analysis_request):
        row = await repository.create_pending(analysis_request)
        await repository.update_progress(row.id, 30, "Transcribing audio...")

        await repository.mark_failed(row.id, "Transcription failed with status: FAILED", "transcribing")

        stored = await repository.get(row.id)
        assert stored.processing_status == ProcessingStatus.FAILED
        assert stored.error_message == "Transcription failed with status: FAILED"
        assert stored.failed_stage == "transcribing"
        assert stored.progress_percent == 30

        entries = await _queue_entries(sessionmaker, row.id)
        assert entries[0].status == QueueStatus.FAILED
        assert entries[0].error_details["stage"] == "transcribing"

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, repository):
        assert await repository.get("analysis_missing") is None


class TestHistory:
    """Completed analyses per candidate."""

    @pytest.mark.asyncio
    async def test_lists_only_completed_for_candidate(self, repository, analysis_request):
        await repository.save_result(make_result("analysis_a"))
        await repository.save_result(make_result("analysis_b"))
        await repository.save_result(make_result("analysis_other", candidate_id="candidate_7"))
        await repository.create_pending(analysis_request)

        records = await repository.list_for_candidate("candidate_42")

        assert {record.id for record in records} == {"analysis_a", "analysis_b"}

    @pytest.mark.asyncio
    async def test_limit(self, repository):
        for index in range(3):
            await repository.save_result(make_result(f"analysis_{index}"))

        assert len(await repository.list_for_candidate("candidate_42", limit=2)) == 2


class TestQueueClaims:
    """Claiming due queue entries for dispatch."""

    @pytest.mark.asyncio
    async def test_claims_by_priority_then_schedule(self, repository, analysis_request):
        earlier = now() - timedelta(minutes=10)
        later = now() - timedelta(minutes=5)
        low = await repository.create_pending(analysis_request, priority=1, scheduled_for=earlier)
        high_late = await repository.create_pending(analysis_request, priority=9, scheduled_for=later)
        high_early = await repository.create_pending(analysis_request, priority=9, scheduled_for=earlier)

        claimed = await repository.claim_due_entries(limit=10)

        assert claimed == [high_early.id, high_late.id, low.id]

    @pytest.mark.asyncio
    async def test_future_and_claimed_entries_are_skipped(self, repository, sessionmaker, analysis_request):
        future = await repository.create_pending(
            analysis_request, scheduled_for=now() + timedelta(hours=1)
        )
        due = await repository.create_pending(analysis_request, scheduled_for=now() - timedelta(minutes=1))

        assert await repository.claim_due_entries() == [due.id]
        assert await repository.claim_due_entries() == []

        entries = await _queue_entries(sessionmaker, due.id)
        assert entries[0].status == QueueStatus.PROCESSING
        assert entries[0].attempts == 1
        assert (await _queue_entries(sessionmaker, future.id))[0].status == QueueStatus.PENDING

    @pytest.mark.asyncio
    async def test_mark_dispatched(self, repository, sessionmaker, analysis_request):
        row = await repository.create_pending(analysis_request)

        await repository.mark_dispatched(row.id)

        entries = await _queue_entries(sessionmaker, row.id)
        assert entries[0].status == QueueStatus.PROCESSING
        assert entries[0].attempts == 1
        assert await repository.claim_due_entries() == []
