"""Pipeline run states and the progress published on entering each."""

from enum import Enum as PyEnum


class PipelineState(str, PyEnum):
    """States of one analysis run. Transitions are strictly forward."""

    IDLE = "idle"
    VALIDATING = "validating"
    UPLOADING_MEDIA = "uploading_media"
    TRANSCRIBING = "transcribing"
    ANALYZING_CONTENT = "analyzing_content"
    ANALYZING_SKILLS = "analyzing_skills"
    ANALYZING_SOFT_SKILLS = "analyzing_soft_skills"
    GENERATING_RECOMMENDATIONS = "generating_recommendations"
    SCORING = "scoring"
    PERSISTING = "persisting"
    COMPLETE = "complete"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (PipelineState.COMPLETE, PipelineState.FAILED)


# Forward order of the non-failure states
STATE_ORDER: tuple[PipelineState, ...] = (
    PipelineState.IDLE,
    PipelineState.VALIDATING,
    PipelineState.UPLOADING_MEDIA,
    PipelineState.TRANSCRIBING,
    PipelineState.ANALYZING_CONTENT,
    PipelineState.ANALYZING_SKILLS,
    PipelineState.ANALYZING_SOFT_SKILLS,
    PipelineState.GENERATING_RECOMMENDATIONS,
    PipelineState.SCORING,
    PipelineState.PERSISTING,
    PipelineState.COMPLETE,
)

# (percent complete, step label) published when a state is entered
STATE_PROGRESS: dict[PipelineState, tuple[int, str]] = {
    PipelineState.IDLE: (0, "Waiting to start"),
    PipelineState.VALIDATING: (5, "Validating video and service configuration..."),
    PipelineState.UPLOADING_MEDIA: (15, "Uploading video to storage..."),
    PipelineState.TRANSCRIBING: (30, "Transcribing audio..."),
    PipelineState.ANALYZING_CONTENT: (50, "Analyzing video content..."),
    PipelineState.ANALYZING_SKILLS: (60, "Analyzing technical skills..."),
    PipelineState.ANALYZING_SOFT_SKILLS: (70, "Analyzing soft skills..."),
    PipelineState.GENERATING_RECOMMENDATIONS: (80, "Generating recommendations..."),
    PipelineState.SCORING: (88, "Calculating scores and benchmarks..."),
    PipelineState.PERSISTING: (94, "Saving analysis results..."),
    PipelineState.COMPLETE: (100, "Analysis complete!"),
}

FAILED_LABEL = "Analysis failed"


def can_transition(current: PipelineState, target: PipelineState) -> bool:
    """
    Check whether a run may move from ``current`` to ``target``.

    Any non-terminal state may fail; otherwise only the next state in
    ``STATE_ORDER`` is reachable.
    """
    if current.is_terminal:
        return False
    if target is PipelineState.FAILED:
        return True
    index = STATE_ORDER.index(current)
    return index + 1 < len(STATE_ORDER) and STATE_ORDER[index + 1] is target
