"""Actionable improvement recommendations from the earlier stage outputs."""

import json

from agents.base import BaseAgent
from agents.common.utils import mean
from agents.recommendations.prompts import RECOMMENDATIONS_PROMPT
from pipeline.results import StageResult
from pipeline.schemas import (
    ContentAnalysis,
    Recommendation,
    RecommendationPriority,
    RecommendationType,
    SoftSkillAssessment,
    TechnicalSkillAssessment,
)

Recommendations = tuple[Recommendation, ...]

MAX_RECOMMENDATIONS = 5

DEFAULT_RECOMMENDATIONS: Recommendations = (
    Recommendation(
        type=RecommendationType.CONTENT,
        priority=RecommendationPriority.HIGH,
        title="Add More Technical Examples",
        description=(
            "Include specific code examples and project walkthroughs "
            "to better demonstrate technical skills"
        ),
        action_items=(
            "Record a live coding session",
            "Show actual project code",
            "Explain technical decisions",
            "Demonstrate problem-solving process",
        ),
    ),
    Recommendation(
        type=RecommendationType.PRESENTATION,
        priority=RecommendationPriority.MEDIUM,
        title="Improve Video Engagement",
        description="Enhance viewer engagement through better pacing and visual elements",
        action_items=(
            "Vary speaking pace for emphasis",
            "Use visual aids and diagrams",
            "Include brief pauses for key points",
            "Maintain eye contact with camera",
        ),
    ),
)


class RecommendationsAgent(BaseAgent[Recommendations]):
    """Turns the content, technical and soft-skill results into 3-5 recommendations."""

    name = "recommendations"
    temperature = 0.4
    max_output_tokens = 3000

    def render(
        self,
        content: ContentAnalysis,
        technical_skills: tuple[TechnicalSkillAssessment, ...],
        soft_skills: SoftSkillAssessment,
    ) -> str:
        video_quality = content.video_quality.model_dump(by_alias=True, mode="json")
        key_topics = [topic.model_dump(by_alias=True, mode="json") for topic in content.key_topics]

        if technical_skills:
            average_confidence = f"{mean([s.confidence for s in technical_skills], 0.0):.1f}"
        else:
            average_confidence = "n/a (no skills detected)"

        communication = soft_skills.communication.model_dump().values()
        leadership = soft_skills.leadership.model_dump().values()

        return RECOMMENDATIONS_PROMPT.format(
            video_quality=json.dumps(video_quality),
            key_topics=json.dumps(key_topics),
            skill_count=len(technical_skills),
            average_confidence=average_confidence,
            communication_average=mean(list(communication), 0.0),
            leadership_average=mean(list(leadership), 0.0),
        )

    def parse(self, payload: object) -> Recommendations:
        if isinstance(payload, dict) and isinstance(payload.get("recommendations"), list):
            payload = payload["recommendations"]
        if not isinstance(payload, list) or not payload:
            raise ValueError("expected a non-empty JSON array of recommendations")
        return tuple(
            Recommendation.model_validate(item) for item in payload[:MAX_RECOMMENDATIONS]
        )

    def default(self) -> Recommendations:
        return DEFAULT_RECOMMENDATIONS

    async def recommend(
        self,
        content: ContentAnalysis,
        technical_skills: tuple[TechnicalSkillAssessment, ...],
        soft_skills: SoftSkillAssessment,
    ) -> StageResult[Recommendations]:
        return await self.complete(self.render(content, technical_skills, soft_skills))
