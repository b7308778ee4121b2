"""
Video analysis pipeline.

One ``AnalysisPipeline.run`` call drives a single video through every stage:

    Validating -> UploadingMedia -> Transcribing -> AnalyzingContent
    -> AnalyzingSkills -> AnalyzingSoftSkills -> GeneratingRecommendations
    -> Scoring -> Persisting -> Complete

Any ``AnalysisError`` moves the run to ``Failed``; the error is re-raised
with ``failed_state`` and ``processing_time_seconds`` filled in. Stage outputs
that degraded to their defaults are listed in ``degraded_stages``.
"""

import asyncio
import logging
import time
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from agents.base import build_genai_client
from agents.content.agent import ContentAnalysisAgent
from agents.recommendations.agent import RecommendationsAgent
from agents.soft_skills.agent import SoftSkillsAgent
from agents.technical.agent import TechnicalSkillsAgent
from core.config import Settings
from core.exceptions import (
    AnalysisCancelledError,
    AnalysisError,
    UnexpectedAnalysisError,
    ValidationError,
)
from core.integrations.transcribe import TranscriptionService
from core.storage.s3 import S3Storage
from core.utils.datetime import now
from core.utils.validators import validate_media_location
from pipeline.benchmark import BenchmarkProvider, HeuristicBenchmarkProvider
from pipeline.media import MediaStore
from pipeline.persistence import AnalysisRepository, new_analysis_id
from pipeline.progress import ProgressTracker
from pipeline.results import StageResult
from pipeline.schemas import AnalysisRequest, VideoAnalysisResult
from pipeline.scoring import score
from pipeline.states import STATE_PROGRESS, PipelineState, can_transition

logger = logging.getLogger(__name__)


def check_service_config(settings: Settings) -> None:
    """Raise ``ValidationError`` naming any blank credential or bucket setting."""
    missing = settings.missing_service_config()
    if missing:
        raise ValidationError(f"Missing service configuration: {', '.join(missing)}")


class _Run:
    """Mutable bookkeeping for one run. Never shared between runs."""

    def __init__(
        self,
        progress: ProgressTracker,
        cancel_event: Optional[asyncio.Event],
        started: float,
    ):
        self.state = PipelineState.IDLE
        self.progress = progress
        self.cancel_event = cancel_event
        self.started = started
        self.degraded: list[str] = []

    def record(self, result: StageResult):
        if result.degraded:
            logger.warning(f"Stage {result.stage} degraded to default: {result.reason}")
            self.degraded.append(result.stage)
        return result.value


class AnalysisPipeline:
    """Orchestrates storage, transcription, model stages, scoring and persistence."""

    def __init__(
        self,
        settings: Settings,
        media: MediaStore,
        transcription: TranscriptionService,
        content_agent: ContentAnalysisAgent,
        technical_agent: TechnicalSkillsAgent,
        soft_skills_agent: SoftSkillsAgent,
        recommendations_agent: RecommendationsAgent,
        repository: AnalysisRepository,
        benchmark_provider: Optional[BenchmarkProvider] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings
        self.media = media
        self.transcription = transcription
        self.content_agent = content_agent
        self.technical_agent = technical_agent
        self.soft_skills_agent = soft_skills_agent
        self.recommendations_agent = recommendations_agent
        self.repository = repository
        self.benchmark_provider = benchmark_provider or HeuristicBenchmarkProvider()
        self.concurrent_skill_stages = settings.analysis_concurrent_skill_stages
        self._clock = clock

    async def run(
        self,
        request: AnalysisRequest,
        progress: Optional[ProgressTracker] = None,
        cancel_event: Optional[asyncio.Event] = None,
        analysis_id: Optional[str] = None,
    ) -> VideoAnalysisResult:
        """
        Analyze one video end to end.

        Args:
            request: Video location, metadata and options
            progress: Receives progress events (a private tracker is used if omitted)
            cancel_event: Set to stop the run at the next stage boundary
            analysis_id: Id for the result, e.g. of a pre-created queued row

        Returns:
            The persisted analysis result

        Raises:
            AnalysisError: Any hard failure, with ``failed_state`` and
                ``processing_time_seconds`` set
        """
        run = _Run(progress or ProgressTracker(), cancel_event, self._clock())
        await run.progress.start()

        try:
            result = await self._execute(run, request, analysis_id or new_analysis_id())
        except AnalysisError as e:
            await self._fail(run, e)
            raise
        except asyncio.CancelledError:
            cancelled = AnalysisCancelledError("Analysis cancelled")
            await self._fail(run, cancelled)
            raise
        except Exception as e:
            error = UnexpectedAnalysisError(f"Unexpected error: {type(e).__name__}: {e}", cause=e)
            await self._fail(run, error)
            raise error from e

        run.progress.finish(result)
        return result

    async def _execute(
        self, run: _Run, request: AnalysisRequest, analysis_id: str
    ) -> VideoAnalysisResult:
        metadata = request.video_metadata
        options = request.analysis_options
        logger.info(f"Starting video analysis {analysis_id}: {metadata.title}")

        await self._enter(run, PipelineState.VALIDATING)
        self._validate(request)

        await self._enter(run, PipelineState.UPLOADING_MEDIA)
        durable_location = await self.media.ensure_durable(request.video_location, metadata.owner_id)

        await self._enter(run, PipelineState.TRANSCRIBING)
        transcript = run.record(
            await self.transcription.transcribe(durable_location, metadata.owner_id)
        )

        await self._enter(run, PipelineState.ANALYZING_CONTENT)
        content = run.record(await self.content_agent.analyze(transcript, request))

        if self.concurrent_skill_stages:
            technical_skills, soft_skills = await self._analyze_skills_concurrently(
                run, transcript, request
            )
        else:
            await self._enter(run, PipelineState.ANALYZING_SKILLS)
            technical_skills = run.record(await self.technical_agent.analyze(transcript, request))

            await self._enter(run, PipelineState.ANALYZING_SOFT_SKILLS)
            soft_skills = run.record(await self.soft_skills_agent.analyze(transcript, request))

        await self._enter(run, PipelineState.GENERATING_RECOMMENDATIONS)
        recommendations = run.record(
            await self.recommendations_agent.recommend(content, technical_skills, soft_skills)
        )

        await self._enter(run, PipelineState.SCORING)
        scores = score(technical_skills, soft_skills, content)
        benchmark = None
        if options.include_benchmarking:
            benchmark = await self.benchmark_provider.benchmark(technical_skills, metadata)

        result = VideoAnalysisResult(
            id=analysis_id,
            video_id=request.video_id or metadata.owner_id,
            candidate_id=metadata.owner_id,
            analysis_date=now(),
            processing_time_seconds=self._elapsed(run),
            transcript=transcript,
            technical_skills=technical_skills,
            soft_skills=soft_skills,
            video_quality=content.video_quality,
            personality_insights=content.personality_insights if options.include_personality else None,
            key_topics=content.key_topics,
            recommendations=recommendations,
            overall_score=scores.overall,
            category_scores=scores.categories,
            industry_benchmark=benchmark,
            degraded_stages=tuple(run.degraded),
        )

        await self._enter(run, PipelineState.PERSISTING)
        await self.repository.save_result(result)

        await self._enter(run, PipelineState.COMPLETE)
        logger.info(
            f"Analysis {analysis_id} complete in {result.processing_time_seconds}s, "
            f"overall score {result.overall_score}"
        )
        return result

    async def _analyze_skills_concurrently(self, run: _Run, transcript, request: AnalysisRequest):
        # Both states are entered up front; the stages then run as two tasks
        await self._enter(run, PipelineState.ANALYZING_SKILLS)
        await self._enter(run, PipelineState.ANALYZING_SOFT_SKILLS)
        technical, soft = await asyncio.gather(
            self.technical_agent.analyze(transcript, request),
            self.soft_skills_agent.analyze(transcript, request),
        )
        return run.record(technical), run.record(soft)

    def _validate(self, request: AnalysisRequest) -> None:
        is_valid, error = validate_media_location(request.video_location)
        if not is_valid:
            raise ValidationError(error)

        check_service_config(self.settings)

    async def _enter(self, run: _Run, state: PipelineState) -> None:
        if run.cancel_event is not None and run.cancel_event.is_set():
            raise AnalysisCancelledError(f"Analysis cancelled before {state.value}")
        if not can_transition(run.state, state):
            raise RuntimeError(f"Illegal pipeline transition {run.state.value} -> {state.value}")

        run.state = state
        percent, label = STATE_PROGRESS[state]
        await run.progress.publish(percent, label)

    async def _fail(self, run: _Run, error: AnalysisError) -> None:
        error.failed_state = run.state.value
        error.processing_time_seconds = self._elapsed(run)
        logger.error(
            f"Video analysis failed in {run.state.value} after "
            f"{error.processing_time_seconds}s ({error.kind}): {error.message}"
        )
        run.state = PipelineState.FAILED
        await run.progress.fail(error.message)

    def _elapsed(self, run: _Run) -> float:
        return round(self._clock() - run.started, 3)


def build_pipeline(
    settings: Settings,
    sessionmaker: async_sessionmaker[AsyncSession],
) -> AnalysisPipeline:
    """
    Wire a pipeline from settings. All clients are created here and injected.

    Raises:
        ValidationError: Required service settings are blank, so no client
            can be built
    """
    try:
        check_service_config(settings)
    except ValidationError as e:
        e.failed_state = PipelineState.VALIDATING.value
        raise

    storage = S3Storage(settings)
    client = build_genai_client(settings)
    return AnalysisPipeline(
        settings=settings,
        media=MediaStore(storage, timeout_seconds=settings.storage_call_timeout_seconds),
        transcription=TranscriptionService(settings, storage),
        content_agent=ContentAnalysisAgent.from_settings(client, settings),
        technical_agent=TechnicalSkillsAgent.from_settings(client, settings),
        soft_skills_agent=SoftSkillsAgent.from_settings(client, settings),
        recommendations_agent=RecommendationsAgent.from_settings(client, settings),
        repository=AnalysisRepository(sessionmaker),
    )
