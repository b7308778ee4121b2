"""
Error taxonomy for the video analysis pipeline.

Every pipeline failure derives from ``AnalysisError``. The orchestrator fills in
``failed_state`` and ``processing_time_seconds`` before re-raising so callers
can report where and after how long a run stopped.
"""

from typing import Optional


class AnalysisError(Exception):
    """Base class for all pipeline errors."""

    kind: str = "analysis_error"

    def __init__(self, message: str, *, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.failed_state: Optional[str] = None
        self.processing_time_seconds: Optional[float] = None


class ValidationError(AnalysisError):
    """Request or configuration is missing required input."""

    kind = "validation"


class StorageError(AnalysisError):
    """Fetching or writing media in object storage failed."""

    kind = "storage"


class TranscriptionJobError(AnalysisError):
    """The transcription service reported a FAILED job."""

    kind = "transcription_job"

    def __init__(
        self,
        message: str,
        *,
        job_name: Optional[str] = None,
        failure_reason: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message, cause=cause)
        self.job_name = job_name
        self.failure_reason = failure_reason


class TranscriptionTimeoutError(AnalysisError):
    """Polling attempts were exhausted while the job was still running."""

    kind = "transcription_timeout"

    def __init__(
        self,
        message: str,
        *,
        job_name: Optional[str] = None,
        attempts: int = 0,
    ):
        super().__init__(message)
        self.job_name = job_name
        self.attempts = attempts


class ServiceTimeoutError(AnalysisError):
    """A single storage, transcription or model call exceeded its timeout."""

    kind = "timeout"

    def __init__(self, message: str, *, operation: str, timeout_seconds: float):
        super().__init__(message)
        self.operation = operation
        self.timeout_seconds = timeout_seconds


class ModelParseError(AnalysisError):
    """Model output was not valid JSON for the stage schema. Recovered in-stage."""

    kind = "model_parse"


class PersistenceError(AnalysisError):
    """Writing the analysis result to the database failed."""

    kind = "persistence"


class AnalysisCancelledError(AnalysisError):
    """The caller requested cancellation of a running analysis."""

    kind = "cancelled"


class UnexpectedAnalysisError(AnalysisError):
    """A stage raised something outside the pipeline's own error types."""

    kind = "internal"
