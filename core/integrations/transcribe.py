"""AWS Transcribe integration for candidate video transcripts."""

import asyncio
import logging
import uuid
from typing import Any, Awaitable, Callable

import aioboto3
from botocore.exceptions import BotoCoreError, ClientError

from core.config import Settings
from core.exceptions import TranscriptionJobError, TranscriptionTimeoutError
from core.storage.s3 import S3Storage
from core.utils.datetime import now, to_unix_millis
from core.utils.timeouts import call_with_timeout
from pipeline.results import StageResult
from pipeline.schemas import Transcript, TranscriptSegment

logger = logging.getLogger(__name__)

STAGE_NAME = "transcription"

IN_PROGRESS_STATUSES = ("QUEUED", "IN_PROGRESS")

FALLBACK_TRANSCRIPT = Transcript(
    text="Sample transcript text for development purposes...",
    confidence=0.95,
    segments=(
        TranscriptSegment(
            start=0,
            end=10,
            text="Hello, I'm a software developer with experience in React and JavaScript...",
            confidence=0.98,
        ),
    ),
)


def transcription_job_name(owner_id: str) -> str:
    """Unique job name per run: owner, timestamp and a random suffix."""
    return f"transcription_{owner_id}_{to_unix_millis(now())}_{uuid.uuid4().hex[:8]}"


def transcript_key(owner_id: str, job_name: str) -> str:
    """Object key the transcription service writes its output to."""
    return f"transcripts/{owner_id}/{job_name}.json"


def poll_delay(attempt: int, base_delay: float = 5.0, max_delay: float = 15.0) -> float:
    """Delay before poll ``attempt`` (0-based): grows by 1s per attempt, capped."""
    return min(base_delay + attempt, max_delay)


def parse_transcript_document(document: dict[str, Any]) -> Transcript:
    """
    Normalize a Transcribe output document into a ``Transcript``.

    Punctuation items (no timing) and empty tokens are dropped, and segments
    are ordered by start time.

    Args:
        document: Decoded Transcribe JSON output

    Returns:
        Normalized transcript
    """
    results = document["results"]
    transcripts = results.get("transcripts") or [{}]
    full_text = transcripts[0].get("transcript", "")

    segments = []
    for item in results.get("items") or []:
        if "start_time" not in item:
            continue
        alternatives = item.get("alternatives") or [{}]
        text = (alternatives[0].get("content") or "").strip()
        if not text:
            continue
        start = float(item["start_time"])
        end = float(item.get("end_time", start))
        segments.append(
            TranscriptSegment(
                start=start,
                end=max(start, end),
                text=text,
                confidence=float(alternatives[0].get("confidence") or 0),
            )
        )
    segments.sort(key=lambda segment: segment.start)

    if "confidence" in transcripts[0]:
        confidence = float(transcripts[0]["confidence"])
    elif segments:
        confidence = sum(segment.confidence for segment in segments) / len(segments)
    else:
        confidence = 0.0

    return Transcript(text=full_text, confidence=confidence, segments=tuple(segments))


class TranscriptionService:
    """Submits, polls and reads AWS Transcribe jobs."""

    def __init__(
        self,
        settings: Settings,
        storage: S3Storage,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """
        Args:
            settings: Provides credentials, language, polling and timeout bounds
            storage: Bucket where job output lands
            sleep: Awaitable used between polls
        """
        self.storage = storage
        self.credentials = settings.aws_credentials()
        self.language_code = settings.aws_transcribe_language
        self.max_attempts = settings.transcription_max_attempts
        self.base_delay = settings.transcription_base_delay_seconds
        self.max_delay = settings.transcription_max_delay_seconds
        self.call_timeout = settings.storage_call_timeout_seconds
        self._sleep = sleep

    async def transcribe(self, durable_location: str, owner_id: str) -> StageResult[Transcript]:
        """
        Transcribe a stored video.

        Args:
            durable_location: Managed-storage location of the video
            owner_id: Candidate owning the video

        Returns:
            Transcript, degraded to ``FALLBACK_TRANSCRIPT`` when the job output
            cannot be read

        Raises:
            TranscriptionJobError: The job could not start or reported FAILED
            TranscriptionTimeoutError: Polling attempts were exhausted
        """
        job_name = transcription_job_name(owner_id)
        output_key = transcript_key(owner_id, job_name)

        session = aioboto3.Session(**self.credentials)
        async with session.client("transcribe") as client:
            await self._start_job(client, job_name, durable_location, output_key)
            await self._wait_for_completion(client, job_name)

        return await self._read_result(job_name, output_key)

    async def _start_job(self, client, job_name: str, media_uri: str, output_key: str) -> None:
        logger.info(f"Starting transcription job: {job_name}")
        try:
            await call_with_timeout(
                client.start_transcription_job(
                    TranscriptionJobName=job_name,
                    Media={"MediaFileUri": media_uri},
                    MediaFormat="mp4",
                    LanguageCode=self.language_code,
                    Settings={
                        "ShowSpeakerLabels": True,
                        "MaxSpeakerLabels": 2,
                        "ShowAlternatives": True,
                        "MaxAlternatives": 3,
                    },
                    OutputBucketName=self.storage.bucket_name,
                    OutputKey=output_key,
                ),
                self.call_timeout,
                "transcription job submission",
            )
        except (ClientError, BotoCoreError) as e:
            raise TranscriptionJobError(
                f"Failed to start transcription job: {e}", job_name=job_name, cause=e
            ) from e

    async def _wait_for_completion(self, client, job_name: str) -> None:
        status = "IN_PROGRESS"
        for attempt in range(self.max_attempts):
            await self._sleep(poll_delay(attempt, self.base_delay, self.max_delay))

            try:
                response = await call_with_timeout(
                    client.get_transcription_job(TranscriptionJobName=job_name),
                    self.call_timeout,
                    "transcription status poll",
                )
            except (ClientError, BotoCoreError) as e:
                raise TranscriptionJobError(
                    f"Failed to read transcription job status: {e}", job_name=job_name, cause=e
                ) from e

            job = response.get("TranscriptionJob") or {}
            status = job.get("TranscriptionJobStatus") or "FAILED"
            logger.info(f"Transcription status: {status} (attempt {attempt + 1})")

            if status == "COMPLETED":
                return
            if status not in IN_PROGRESS_STATUSES:
                reason = job.get("FailureReason")
                raise TranscriptionJobError(
                    f"Transcription failed with status: {status}"
                    + (f" ({reason})" if reason else ""),
                    job_name=job_name,
                    failure_reason=reason,
                )

        raise TranscriptionTimeoutError(
            f"Transcription job {job_name} still {status} after {self.max_attempts} polls",
            job_name=job_name,
            attempts=self.max_attempts,
        )

    async def _read_result(self, job_name: str, output_key: str) -> StageResult[Transcript]:
        try:
            document = await call_with_timeout(
                self.storage.download_json(output_key),
                self.call_timeout,
                "transcript download",
            )
            transcript = parse_transcript_document(document)
        except Exception as e:
            logger.warning(
                f"Failed to retrieve transcription result for {job_name}, using fallback: {e}"
            )
            return StageResult.fallback(STAGE_NAME, FALLBACK_TRANSCRIPT, str(e))

        logger.info(f"Transcription completed successfully: {len(transcript.segments)} segments")
        return StageResult.ok(STAGE_NAME, transcript)
