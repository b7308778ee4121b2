"""Video content, quality and personality analysis."""

from agents.base import BaseAgent
from agents.content.prompts import CONTENT_ANALYSIS_PROMPT
from pipeline.results import StageResult
from pipeline.schemas import (
    Accessibility,
    AnalysisRequest,
    CommunicationStyle,
    ContentAnalysis,
    KeyTopic,
    PersonalityInsights,
    PersonalityTraits,
    Transcript,
    VideoQualityMetrics,
    WorkStyle,
)

DEFAULT_CONTENT_ANALYSIS = ContentAnalysis(
    video_quality=VideoQualityMetrics(
        audio_clarity=85,
        visual_quality=90,
        engagement=78,
        pacing=82,
        structure=88,
        accessibility=Accessibility(has_subtitles=False, audio_level=85, visual_contrast=90),
    ),
    personality_insights=PersonalityInsights(
        traits=PersonalityTraits(
            openness=75,
            conscientiousness=85,
            extraversion=70,
            agreeableness=80,
            neuroticism=25,
        ),
        work_style=WorkStyle(collaborative=80, independent=75, detail_oriented=85, big_picture=70),
        motivators=("Learning", "Problem Solving", "Innovation"),
        communication_style=CommunicationStyle.ANALYTICAL,
    ),
    key_topics=(
        KeyTopic(
            topic="Software Development",
            relevance=95,
            mention_count=8,
            context_phrases=("Programming", "Code quality", "Best practices"),
        ),
    ),
)


class ContentAnalysisAgent(BaseAgent[ContentAnalysis]):
    """Scores video quality, extracts key topics and infers personality insights."""

    name = "content_analysis"
    temperature = 0.3
    max_output_tokens = 4000

    def render(self, transcript: Transcript, request: AnalysisRequest) -> str:
        metadata = request.video_metadata
        return CONTENT_ANALYSIS_PROMPT.format(
            title=metadata.title,
            category=metadata.category.value,
            duration=metadata.duration_seconds,
            industry_context=request.analysis_options.industry_context or "general",
            transcript=transcript.text,
        )

    def parse(self, payload: object) -> ContentAnalysis:
        if not isinstance(payload, dict):
            raise ValueError("expected a JSON object")
        return ContentAnalysis.model_validate(payload)

    def default(self) -> ContentAnalysis:
        return DEFAULT_CONTENT_ANALYSIS

    async def analyze(
        self, transcript: Transcript, request: AnalysisRequest
    ) -> StageResult[ContentAnalysis]:
        return await self.complete(self.render(transcript, request))
