from agents.base import BaseAgent
from agents.soft_skills.prompts import SOFT_SKILLS_PROMPT
from pipeline.results import StageResult
from pipeline.schemas import (
    AnalysisRequest,
    CommunicationSkills,
    LeadershipSkills,
    ProblemSolvingSkills,
    ProfessionalismSkills,
    SoftSkillAssessment,
    Transcript,
)

DEFAULT_SOFT_SKILLS = SoftSkillAssessment(
    communication=CommunicationSkills(clarity=80, confidence=75, engagement=78, articulation=82),
    leadership=LeadershipSkills(initiative=75, decision_making=78, teamwork=80, mentoring=72),
    problem_solving=ProblemSolvingSkills(
        analytical_thinking=85, creativity=75, systematic_approach=82, adaptability=78
    ),
    professionalism=ProfessionalismSkills(
        presentation=85, time_management=80, reliability=88, ethics=90
    ),
)


class SoftSkillsAgent(BaseAgent[SoftSkillAssessment]):
    """Scores communication, leadership, problem solving and professionalism."""

    name = "soft_skills"
    temperature = 0.3
    max_output_tokens = 3000

    def render(self, transcript: Transcript, request: AnalysisRequest) -> str:
        return SOFT_SKILLS_PROMPT.format(
            category=request.video_metadata.category.value,
            transcript=transcript.text,
        )

    def parse(self, payload: object) -> SoftSkillAssessment:
        if not isinstance(payload, dict):
            raise ValueError("expected a JSON object")
        return SoftSkillAssessment.model_validate(payload)

    def default(self) -> SoftSkillAssessment:
        return DEFAULT_SOFT_SKILLS

    async def analyze(
        self, transcript: Transcript, request: AnalysisRequest
    ) -> StageResult[SoftSkillAssessment]:
        return await self.complete(self.render(transcript, request))
