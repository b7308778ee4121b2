"""
Industry benchmark lookup.

``HeuristicBenchmarkProvider`` is a deterministic placeholder until real peer
data exists; swap in another ``BenchmarkProvider`` to use a data source.
"""

from typing import Protocol, Sequence

from agents.common.utils import mean
from pipeline.schemas import (
    IndustryBenchmark,
    TechnicalSkillAssessment,
    VideoCategory,
    VideoMetadata,
)

MIN_PERCENTILE = 25.0
MAX_PERCENTILE = 95.0

# Approximate peer pool size per video category
PEER_COUNTS: dict[VideoCategory, int] = {
    VideoCategory.INTRODUCTION: 1800,
    VideoCategory.SKILLS: 1200,
    VideoCategory.PROJECT: 950,
    VideoCategory.TESTIMONIAL: 800,
}

DEFAULT_TOP_SKILLS = ("React", "JavaScript", "Problem Solving", "Communication")
DEFAULT_IMPROVEMENT_AREAS = ("System Design", "Leadership", "Public Speaking", "Testing")

MAX_LISTED_SKILLS = 4


class BenchmarkProvider(Protocol):
    async def benchmark(
        self,
        technical_skills: Sequence[TechnicalSkillAssessment],
        metadata: VideoMetadata,
    ) -> IndustryBenchmark: ...


def _demonstration_average(skill: TechnicalSkillAssessment) -> float:
    quality = skill.demonstration_quality
    return (quality.clarity + quality.depth + quality.examples + quality.problem_solving) / 4


class HeuristicBenchmarkProvider:
    """Derives a benchmark from the detected skills alone."""

    async def benchmark(
        self,
        technical_skills: Sequence[TechnicalSkillAssessment],
        metadata: VideoMetadata,
    ) -> IndustryBenchmark:
        average_confidence = mean([skill.confidence for skill in technical_skills], 50.0)
        percentile = min(MAX_PERCENTILE, max(MIN_PERCENTILE, average_confidence))

        strongest = sorted(technical_skills, key=lambda s: (-s.confidence, s.skill_name))
        top_skills = tuple(skill.skill_name for skill in strongest[:MAX_LISTED_SKILLS])

        weakest = sorted(technical_skills, key=lambda s: (_demonstration_average(s), s.skill_name))
        improvement_areas = tuple(
            skill.skill_name
            for skill in weakest[:MAX_LISTED_SKILLS]
            if skill.skill_name not in top_skills[:1]
        )

        return IndustryBenchmark(
            percentile=round(percentile, 1),
            similar_profile_count=PEER_COUNTS[metadata.category],
            top_skills=top_skills or DEFAULT_TOP_SKILLS,
            improvement_areas=improvement_areas or DEFAULT_IMPROVEMENT_AREAS,
        )
