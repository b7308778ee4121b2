"""
Score aggregation for a finished analysis.

The weighting here is a placeholder heuristic: four equally weighted
categories, each on the 0-100 scale.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Sequence

from agents.common.utils import mean
from pipeline.schemas import (
    CategoryScores,
    ContentAnalysis,
    SoftSkillAssessment,
    TechnicalSkillAssessment,
)

NEUTRAL_SCORE = 70.0


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (``round()`` rounds to even)."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class ScoreCard:
    overall: int
    categories: CategoryScores


def score(
    technical_skills: Sequence[TechnicalSkillAssessment],
    soft_skills: SoftSkillAssessment,
    content: ContentAnalysis,
) -> ScoreCard:
    """
    Aggregate stage outputs into category and overall scores.

    - technical: mean skill confidence, 70 with no skills
    - communication: mean of the four communication sub-metrics
    - presentation: video engagement
    - content: mean key topic relevance, 70 with no topics

    Each category is rounded half-up, and the overall score is the half-up
    rounding of the mean of the rounded categories.
    """
    communication = soft_skills.communication
    categories = CategoryScores(
        technical=round_half_up(
            mean([skill.confidence for skill in technical_skills], NEUTRAL_SCORE)
        ),
        communication=round_half_up(
            mean(
                [
                    communication.clarity,
                    communication.confidence,
                    communication.engagement,
                    communication.articulation,
                ],
                NEUTRAL_SCORE,
            )
        ),
        presentation=round_half_up(content.video_quality.engagement),
        content=round_half_up(
            mean([topic.relevance for topic in content.key_topics], NEUTRAL_SCORE)
        ),
    )

    overall = round_half_up(
        (
            categories.technical
            + categories.communication
            + categories.presentation
            + categories.content
        )
        / 4
    )
    return ScoreCard(overall=overall, categories=categories)
