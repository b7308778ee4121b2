"""
Data contract of the video analysis pipeline.

Python attributes are snake_case. The wire form (model prompts, stored
``analysis_data`` and API payloads) uses camelCase aliases, so dump with
``model_dump(by_alias=True, mode="json")``.
"""

from datetime import datetime
from enum import Enum as PyEnum
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


Score = Annotated[float, Field(ge=0, le=100)]


class WireModel(BaseModel):
    """Immutable model with camelCase wire aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


# ==================== Enums ===================== #
class VideoCategory(str, PyEnum):
    INTRODUCTION = "introduction"
    SKILLS = "skills"
    PROJECT = "project"
    TESTIMONIAL = "testimonial"


class SkillCategory(str, PyEnum):
    PROGRAMMING = "programming"
    FRAMEWORK = "framework"
    TOOL = "tool"
    METHODOLOGY = "methodology"
    DATABASE = "database"
    CLOUD = "cloud"


class Proficiency(str, PyEnum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"


class CommunicationStyle(str, PyEnum):
    DIRECT = "direct"
    DIPLOMATIC = "diplomatic"
    ANALYTICAL = "analytical"
    EXPRESSIVE = "expressive"


class RecommendationType(str, PyEnum):
    CONTENT = "content"
    TECHNICAL = "technical"
    PRESENTATION = "presentation"
    CAREER = "career"


class RecommendationPriority(str, PyEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# ==================== Request ===================== #
class VideoMetadata(WireModel):
    """Descriptive metadata of the analyzed video."""

    title: str
    description: str = ""
    category: VideoCategory
    duration_seconds: float = Field(ge=0, alias="duration")
    owner_id: str = Field(min_length=1, alias="candidateId")


class AnalysisOptions(WireModel):
    """Caller-selected analysis switches."""

    include_personality: bool = True
    include_benchmarking: bool = True
    focus_areas: frozenset[str] = Field(default_factory=frozenset)
    industry_context: Optional[str] = None


class AnalysisRequest(WireModel):
    """
    Input to one pipeline run.

    ``video_location`` is deliberately not validated here: an empty location
    must fail inside the pipeline's validation state, before any service call.
    """

    video_location: str = Field(alias="videoUrl")
    video_id: Optional[str] = None
    video_metadata: VideoMetadata
    analysis_options: AnalysisOptions = Field(default_factory=AnalysisOptions)


# ==================== Transcript ===================== #
class TranscriptSegment(WireModel):
    start: float = Field(ge=0)
    end: float = Field(ge=0)
    text: str
    confidence: float = Field(ge=0, le=1)

    @model_validator(mode="after")
    def check_bounds(self) -> "TranscriptSegment":
        if self.start > self.end:
            raise ValueError("segment start must not exceed its end")
        return self


class Transcript(WireModel):
    """Full text plus time-aligned segments, ordered by start time."""

    text: str
    confidence: float = Field(ge=0, le=1)
    segments: tuple[TranscriptSegment, ...] = ()

    @field_validator("segments")
    @classmethod
    def check_ordering(cls, v: tuple[TranscriptSegment, ...]) -> tuple[TranscriptSegment, ...]:
        for previous, current in zip(v, v[1:]):
            if current.start < previous.start:
                raise ValueError("segments must be ordered by start time")
        return v


# ==================== Technical skills ===================== #
class SkillTraits(WireModel):
    proficiency: Proficiency
    confidence: Score
    practical_application: Score
    theoretical_knowledge: Score
    real_world_experience: Score
    communication_clarity: Score


class DemonstrationQuality(WireModel):
    clarity: Score
    depth: Score
    examples: Score
    problem_solving: Score


class TechnicalSkillAssessment(WireModel):
    skill_name: str = Field(min_length=1, alias="skill")
    category: SkillCategory
    confidence: Score
    evidence: tuple[str, ...] = ()
    traits: SkillTraits
    demonstration_quality: DemonstrationQuality


# ==================== Soft skills ===================== #
class CommunicationSkills(WireModel):
    clarity: Score
    confidence: Score
    engagement: Score
    articulation: Score


class LeadershipSkills(WireModel):
    initiative: Score
    decision_making: Score
    teamwork: Score
    mentoring: Score


class ProblemSolvingSkills(WireModel):
    analytical_thinking: Score
    creativity: Score
    systematic_approach: Score
    adaptability: Score


class ProfessionalismSkills(WireModel):
    presentation: Score
    time_management: Score
    reliability: Score
    ethics: Score


class SoftSkillAssessment(WireModel):
    communication: CommunicationSkills
    leadership: LeadershipSkills
    problem_solving: ProblemSolvingSkills
    professionalism: ProfessionalismSkills


# ==================== Content analysis ===================== #
class Accessibility(WireModel):
    has_subtitles: bool
    audio_level: Score
    visual_contrast: Score


class VideoQualityMetrics(WireModel):
    audio_clarity: Score
    visual_quality: Score
    engagement: Score
    pacing: Score
    structure: Score
    accessibility: Accessibility


class PersonalityTraits(WireModel):
    openness: Score
    conscientiousness: Score
    extraversion: Score
    agreeableness: Score
    neuroticism: Score


class WorkStyle(WireModel):
    collaborative: Score
    independent: Score
    detail_oriented: Score
    big_picture: Score


class PersonalityInsights(WireModel):
    traits: PersonalityTraits
    work_style: WorkStyle
    motivators: tuple[str, ...] = ()
    communication_style: CommunicationStyle


class KeyTopic(WireModel):
    topic: str
    relevance: Score
    mention_count: int = Field(ge=0, alias="mentions")
    context_phrases: tuple[str, ...] = Field(default=(), alias="context")


class ContentAnalysis(WireModel):
    video_quality: VideoQualityMetrics
    personality_insights: Optional[PersonalityInsights] = None
    key_topics: tuple[KeyTopic, ...] = ()


# ==================== Recommendations & results ===================== #
class Recommendation(WireModel):
    type: RecommendationType
    priority: RecommendationPriority
    title: str
    description: str
    action_items: tuple[str, ...] = ()


class CategoryScores(WireModel):
    technical: int = Field(ge=0, le=100)
    communication: int = Field(ge=0, le=100)
    presentation: int = Field(ge=0, le=100)
    content: int = Field(ge=0, le=100)


class IndustryBenchmark(WireModel):
    percentile: Score
    similar_profile_count: int = Field(ge=0, alias="similarProfiles")
    top_skills: tuple[str, ...] = ()
    improvement_areas: tuple[str, ...] = ()


class VideoAnalysisResult(WireModel):
    """Aggregate root persisted once per successful run."""

    id: str
    video_id: str
    candidate_id: str
    analysis_date: datetime
    processing_time_seconds: float = Field(ge=0, alias="processingTime")

    transcript: Transcript
    technical_skills: tuple[TechnicalSkillAssessment, ...]
    soft_skills: SoftSkillAssessment
    video_quality: VideoQualityMetrics
    personality_insights: Optional[PersonalityInsights] = None
    key_topics: tuple[KeyTopic, ...]
    recommendations: tuple[Recommendation, ...]

    overall_score: int = Field(ge=0, le=100)
    category_scores: CategoryScores
    industry_benchmark: Optional[IndustryBenchmark] = None

    degraded_stages: tuple[str, ...] = ()

    def to_wire(self) -> dict:
        """JSON-compatible camelCase dictionary."""
        return self.model_dump(by_alias=True, mode="json")
