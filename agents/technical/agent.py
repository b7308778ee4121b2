"""Technical skill detection and proficiency assessment."""

from agents.base import BaseAgent
from agents.technical.prompts import TECHNICAL_SKILLS_PROMPT
from pipeline.results import StageResult
from pipeline.schemas import (
    AnalysisRequest,
    DemonstrationQuality,
    Proficiency,
    SkillCategory,
    SkillTraits,
    TechnicalSkillAssessment,
    Transcript,
)

TechnicalSkills = tuple[TechnicalSkillAssessment, ...]

DEFAULT_TECHNICAL_SKILLS: TechnicalSkills = (
    TechnicalSkillAssessment(
        skill_name="JavaScript",
        category=SkillCategory.PROGRAMMING,
        confidence=88,
        evidence=("Mentioned ES6+ features", "Discussed async programming"),
        traits=SkillTraits(
            proficiency=Proficiency.ADVANCED,
            confidence=88,
            practical_application=90,
            theoretical_knowledge=85,
            real_world_experience=92,
            communication_clarity=87,
        ),
        demonstration_quality=DemonstrationQuality(
            clarity=90, depth=85, examples=88, problem_solving=82
        ),
    ),
)


class TechnicalSkillsAgent(BaseAgent[TechnicalSkills]):
    """Lists the technical skills a candidate demonstrates in the transcript."""

    name = "technical_skills"
    temperature = 0.2
    max_output_tokens = 4000

    def render(self, transcript: Transcript, request: AnalysisRequest) -> str:
        options = request.analysis_options
        return TECHNICAL_SKILLS_PROMPT.format(
            industry_context=options.industry_context or "software-development",
            focus_areas=", ".join(sorted(options.focus_areas)) or "none specified",
            transcript=transcript.text,
        )

    def parse(self, payload: object) -> TechnicalSkills:
        # Some responses wrap the array in an object
        if isinstance(payload, dict) and isinstance(payload.get("skills"), list):
            payload = payload["skills"]
        if not isinstance(payload, list):
            raise ValueError("expected a JSON array of skills")
        return tuple(TechnicalSkillAssessment.model_validate(item) for item in payload)

    def default(self) -> TechnicalSkills:
        return DEFAULT_TECHNICAL_SKILLS

    async def analyze(
        self, transcript: Transcript, request: AnalysisRequest
    ) -> StageResult[TechnicalSkills]:
        return await self.complete(self.render(transcript, request))
