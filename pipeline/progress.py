"""Progress surface consumed by UI progress indicators."""

import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from pipeline.schemas import VideoAnalysisResult
from pipeline.states import FAILED_LABEL

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, str], Union[Awaitable[None], None]]


class AnalysisProgress(BaseModel):
    """Snapshot of a run as shown to the candidate."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    is_running: bool = False
    percent_complete: int = Field(default=0, ge=0, le=100)
    current_step_label: str = ""
    error: Optional[str] = None
    result: Optional[dict[str, Any]] = None


class ProgressTracker:
    """
    Receives ``(percent_complete, step_label)`` events from one run.

    Keeps the latest ``AnalysisProgress`` snapshot and the full event history,
    and forwards every event to an optional callback. Percentages within one
    run never decrease.
    """

    def __init__(self, callback: Optional[ProgressCallback] = None):
        self._callback = callback
        self.history: list[tuple[int, str]] = []
        self.snapshot = AnalysisProgress()

    async def start(self) -> None:
        self.history.clear()
        self.snapshot = AnalysisProgress(is_running=True)

    async def publish(self, percent_complete: int, step_label: str) -> None:
        """Record a progress event and notify the callback."""
        if percent_complete < self.snapshot.percent_complete:
            raise ValueError(
                f"progress must not decrease ({self.snapshot.percent_complete} -> {percent_complete})"
            )

        self.history.append((percent_complete, step_label))
        self.snapshot = self.snapshot.model_copy(
            update={
                "percent_complete": percent_complete,
                "current_step_label": step_label,
            }
        )
        await self._notify(percent_complete, step_label)

    async def fail(self, message: str) -> None:
        """Mark the run failed, keeping the last percentage."""
        percent = self.snapshot.percent_complete
        self.history.append((percent, FAILED_LABEL))
        self.snapshot = self.snapshot.model_copy(
            update={
                "is_running": False,
                "current_step_label": FAILED_LABEL,
                "error": message,
            }
        )
        await self._notify(percent, FAILED_LABEL)

    def finish(self, result: VideoAnalysisResult) -> None:
        """Attach the final result once the run is complete."""
        self.snapshot = self.snapshot.model_copy(
            update={"is_running": False, "result": result.to_wire()}
        )

    async def _notify(self, percent_complete: int, step_label: str) -> None:
        if self._callback is None:
            return
        try:
            outcome = self._callback(percent_complete, step_label)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            # Progress is a side channel; the run itself keeps going
            logger.warning(f"Progress callback failed at {percent_complete}%: {e}")
