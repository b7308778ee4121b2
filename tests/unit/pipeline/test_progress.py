"""Tests for progress tracking and state transitions."""

from unittest.mock import AsyncMock, Mock

import pytest

from pipeline.progress import ProgressTracker
from pipeline.states import (
    FAILED_LABEL,
    STATE_ORDER,
    STATE_PROGRESS,
    PipelineState,
    can_transition,
)


class TestStateTransitions:
    """Forward-only state machine."""

    @pytest.mark.parametrize("current,target", list(zip(STATE_ORDER, STATE_ORDER[1:])))
    def test_next_state_is_allowed(self, current, target):
        assert can_transition(current, target)

    @pytest.mark.parametrize("state", STATE_ORDER[:-1])
    def test_any_non_terminal_state_may_fail(self, state):
        assert can_transition(state, PipelineState.FAILED)

    def test_skipping_a_state_is_rejected(self):
        assert not can_transition(PipelineState.VALIDATING, PipelineState.TRANSCRIBING)

    def test_going_back_is_rejected(self):
        assert not can_transition(PipelineState.SCORING, PipelineState.ANALYZING_SKILLS)

    @pytest.mark.parametrize("terminal", [PipelineState.COMPLETE, PipelineState.FAILED])
    def test_terminal_states_have_no_exit(self, terminal):
        assert not any(can_transition(terminal, target) for target in PipelineState)

    def test_progress_table_is_increasing(self):
        percents = [STATE_PROGRESS[state][0] for state in STATE_ORDER]

        assert percents == sorted(percents)
        assert percents[1:] == [5, 15, 30, 50, 60, 70, 80, 88, 94, 100]


class TestProgressTracker:
    """Progress snapshots and callback forwarding."""

    @pytest.mark.asyncio
    async def test_publish_updates_snapshot_and_history(self):
        tracker = ProgressTracker()
        await tracker.start()

        await tracker.publish(5, "Validating")
        await tracker.publish(15, "Uploading")

        assert tracker.snapshot.is_running is True
        assert tracker.snapshot.percent_complete == 15
        assert tracker.snapshot.current_step_label == "Uploading"
        assert tracker.history == [(5, "Validating"), (15, "Uploading")]

    @pytest.mark.asyncio
    async def test_decreasing_progress_is_rejected(self):
        tracker = ProgressTracker()
        await tracker.publish(30, "Transcribing")

        with pytest.raises(ValueError):
            await tracker.publish(15, "Uploading")

    @pytest.mark.asyncio
    async def test_fail_keeps_percentage(self):
        tracker = ProgressTracker()
        await tracker.start()
        await tracker.publish(30, "Transcribing")

        await tracker.fail("Transcription failed with status: FAILED")

        assert tracker.snapshot.is_running is False
        assert tracker.snapshot.percent_complete == 30
        assert tracker.snapshot.current_step_label == FAILED_LABEL
        assert tracker.snapshot.error == "Transcription failed with status: FAILED"
        assert tracker.history[-1] == (30, FAILED_LABEL)

    @pytest.mark.asyncio
    async def test_sync_and_async_callbacks(self):
        sync_callback = Mock()
        async_callback = AsyncMock()

        await ProgressTracker(callback=sync_callback).publish(5, "Validating")
        await ProgressTracker(callback=async_callback).publish(5, "Validating")

        sync_callback.assert_called_once_with(5, "Validating")
        async_callback.assert_awaited_once_with(5, "Validating")

    @pytest.mark.asyncio
    async def test_failing_callback_does_not_stop_progress(self):
        tracker = ProgressTracker(callback=AsyncMock(side_effect=RuntimeError("socket closed")))

        await tracker.publish(50, "Analyzing")

        assert tracker.snapshot.percent_complete == 50

    def test_wire_form_uses_camel_case(self):
        snapshot = ProgressTracker().snapshot

        assert set(snapshot.model_dump(by_alias=True)) == {
            "isRunning",
            "percentComplete",
            "currentStepLabel",
            "error",
            "result",
        }
