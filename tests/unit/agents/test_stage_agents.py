"""Tests for the Gemini-backed analysis stages."""

import asyncio
import json
from unittest.mock import AsyncMock, patch

import aiohttp
import httpx
import pytest
from google.genai import errors as genai_errors

from agents.content.agent import DEFAULT_CONTENT_ANALYSIS, ContentAnalysisAgent
from agents.recommendations.agent import (
    DEFAULT_RECOMMENDATIONS,
    MAX_RECOMMENDATIONS,
    RecommendationsAgent,
)
from agents.soft_skills.agent import DEFAULT_SOFT_SKILLS, SoftSkillsAgent
from agents.technical.agent import DEFAULT_TECHNICAL_SKILLS, TechnicalSkillsAgent
from conftest import (
    CONTENT_PAYLOAD,
    RECOMMENDATIONS_PAYLOAD,
    SOFT_SKILLS_PAYLOAD,
    make_genai_client,
    skill_payload,
)
from core.exceptions import ServiceTimeoutError
from pipeline.schemas import (
    ContentAnalysis,
    SoftSkillAssessment,
    TechnicalSkillAssessment,
    Transcript,
)

TRANSCRIPT = Transcript(
    text="I built a FastAPI service backed by PostgreSQL and deployed it on Kubernetes.",
    confidence=0.94,
)


def _server_error() -> genai_errors.ServerError:
    return genai_errors.ServerError(
        503, {"error": {"code": 503, "message": "The model is overloaded", "status": "UNAVAILABLE"}}
    )


def _client_error() -> genai_errors.ClientError:
    return genai_errors.ClientError(
        400, {"error": {"code": 400, "message": "Invalid argument", "status": "INVALID_ARGUMENT"}}
    )


class TestContentAnalysisAgent:
    """Content, quality and personality stage."""

    @pytest.mark.asyncio
    async def test_parses_model_output(self, analysis_request):
        client = make_genai_client(CONTENT_PAYLOAD)
        agent = ContentAnalysisAgent(client)

        result = await agent.analyze(TRANSCRIPT, analysis_request)

        assert not result.degraded
        assert result.value.video_quality.engagement == 81
        assert [topic.topic for topic in result.value.key_topics] == ["Web APIs", "Testing"]

    @pytest.mark.asyncio
    async def test_sends_prompt_and_generation_config(self, analysis_request):
        client = make_genai_client(CONTENT_PAYLOAD)
        agent = ContentAnalysisAgent(client, model="gemini-test")

        await agent.analyze(TRANSCRIPT, analysis_request)

        kwargs = client.aio.models.generate_content.await_args.kwargs
        assert kwargs["model"] == "gemini-test"
        assert "Full-stack developer introduction" in kwargs["contents"]
        assert "154 seconds" in kwargs["contents"]
        assert TRANSCRIPT.text in kwargs["contents"]
        assert kwargs["config"].temperature == 0.3
        assert kwargs["config"].max_output_tokens == 4000
        assert kwargs["config"].response_mime_type == "application/json"

    @pytest.mark.asyncio
    async def test_fenced_json_is_accepted(self, analysis_request):
        client = make_genai_client(f"```json\n{json.dumps(CONTENT_PAYLOAD)}\n```")

        result = await ContentAnalysisAgent(client).analyze(TRANSCRIPT, analysis_request)

        assert not result.degraded

    @pytest.mark.asyncio
    @pytest.mark.parametrize("response", [
        "I could not analyze this video.",
        {"videoQuality": {"engagement": 81}},
        [CONTENT_PAYLOAD],
    ])
    async def test_unusable_output_degrades_to_default(self, analysis_request, response):
        client = make_genai_client(response)

        result = await ContentAnalysisAgent(client).analyze(TRANSCRIPT, analysis_request)

        assert result.degraded
        assert result.stage == "content_analysis"
        assert result.value == DEFAULT_CONTENT_ANALYSIS
        assert result.reason


class TestTechnicalSkillsAgent:
    """Technical skill detection stage."""

    @pytest.mark.asyncio
    async def test_parses_skill_array(self, analysis_request):
        client = make_genai_client([skill_payload("Python", 90), skill_payload("PostgreSQL", 82, "database")])

        result = await TechnicalSkillsAgent(client).analyze(TRANSCRIPT, analysis_request)

        assert not result.degraded
        assert [skill.skill_name for skill in result.value] == ["Python", "PostgreSQL"]

    @pytest.mark.asyncio
    async def test_accepts_wrapped_array(self, analysis_request):
        client = make_genai_client({"skills": [skill_payload("Go", 75)]})

        result = await TechnicalSkillsAgent(client).analyze(TRANSCRIPT, analysis_request)

        assert [skill.skill_name for skill in result.value] == ["Go"]

    @pytest.mark.asyncio
    async def test_empty_array_is_a_valid_result(self, analysis_request):
        client = make_genai_client([])

        result = await TechnicalSkillsAgent(client).analyze(TRANSCRIPT, analysis_request)

        assert not result.degraded
        assert result.value == ()

    @pytest.mark.asyncio
    async def test_prompt_includes_focus_areas(self, analysis_request):
        client = make_genai_client([])

        await TechnicalSkillsAgent(client).analyze(TRANSCRIPT, analysis_request)

        kwargs = client.aio.models.generate_content.await_args.kwargs
        assert "communication, technical-skills" in kwargs["contents"]
        assert kwargs["config"].temperature == 0.2

    @pytest.mark.asyncio
    async def test_invalid_skill_degrades_to_default(self, analysis_request):
        client = make_genai_client([skill_payload("Python", 140)])

        result = await TechnicalSkillsAgent(client).analyze(TRANSCRIPT, analysis_request)

        assert result.degraded
        assert result.value == DEFAULT_TECHNICAL_SKILLS


class TestSoftSkillsAgent:
    """Soft skill assessment stage."""

    @pytest.mark.asyncio
    async def test_parses_model_output(self, analysis_request):
        client = make_genai_client(SOFT_SKILLS_PAYLOAD)

        result = await SoftSkillsAgent(client).analyze(TRANSCRIPT, analysis_request)

        assert not result.degraded
        assert result.value.leadership.decision_making == 79
        kwargs = client.aio.models.generate_content.await_args.kwargs
        assert kwargs["config"].max_output_tokens == 3000

    @pytest.mark.asyncio
    async def test_missing_section_degrades_to_default(self, analysis_request):
        payload = {key: value for key, value in SOFT_SKILLS_PAYLOAD.items() if key != "leadership"}
        client = make_genai_client(payload)

        result = await SoftSkillsAgent(client).analyze(TRANSCRIPT, analysis_request)

        assert result.degraded
        assert result.value == DEFAULT_SOFT_SKILLS


class TestRecommendationsAgent:
    """Recommendation generation stage."""

    @pytest.fixture
    def inputs(self):
        return (
            ContentAnalysis.model_validate(CONTENT_PAYLOAD),
            (TechnicalSkillAssessment.model_validate(skill_payload("Python", 90)),),
            SoftSkillAssessment.model_validate(SOFT_SKILLS_PAYLOAD),
        )

    @pytest.mark.asyncio
    async def test_parses_recommendations(self, inputs):
        client = make_genai_client(RECOMMENDATIONS_PAYLOAD)

        result = await RecommendationsAgent(client).recommend(*inputs)

        assert not result.degraded
        assert [r.title for r in result.value] == [r["title"] for r in RECOMMENDATIONS_PAYLOAD]

    @pytest.mark.asyncio
    async def test_prompt_summarizes_earlier_stages(self, inputs):
        client = make_genai_client(RECOMMENDATIONS_PAYLOAD)

        await RecommendationsAgent(client).recommend(*inputs)

        prompt = client.aio.models.generate_content.await_args.kwargs["contents"]
        assert "Web APIs" in prompt
        assert "90.0" in prompt  # average skill confidence
        assert "81.2" in prompt  # communication average of 81.25
        assert client.aio.models.generate_content.await_args.kwargs["config"].temperature == 0.4

    @pytest.mark.asyncio
    async def test_no_skills_is_stated_in_prompt(self, inputs):
        content, _, soft_skills = inputs
        client = make_genai_client(RECOMMENDATIONS_PAYLOAD)

        await RecommendationsAgent(client).recommend(content, (), soft_skills)

        prompt = client.aio.models.generate_content.await_args.kwargs["contents"]
        assert "no skills detected" in prompt

    @pytest.mark.asyncio
    async def test_truncates_to_maximum(self, inputs):
        client = make_genai_client(RECOMMENDATIONS_PAYLOAD * 3)

        result = await RecommendationsAgent(client).recommend(*inputs)

        assert len(result.value) == MAX_RECOMMENDATIONS

    @pytest.mark.asyncio
    async def test_empty_list_degrades_to_default(self, inputs):
        client = make_genai_client([])

        result = await RecommendationsAgent(client).recommend(*inputs)

        assert result.degraded
        assert result.value == DEFAULT_RECOMMENDATIONS
        assert len(DEFAULT_RECOMMENDATIONS) == 2


class TestModelCallFailures:
    """Service errors, retries and timeouts around the model call."""

    @pytest.mark.asyncio
    async def test_transient_error_is_retried(self, analysis_request):
        client = make_genai_client(_server_error(), SOFT_SKILLS_PAYLOAD)
        agent = SoftSkillsAgent(client, max_retries=2)

        with patch("agents.common.utils.asyncio.sleep", new=AsyncMock()):
            result = await agent.analyze(TRANSCRIPT, analysis_request)

        assert not result.degraded
        assert client.aio.models.generate_content.await_count == 2

    @pytest.mark.asyncio
    async def test_exhausted_retries_degrade_to_default(self, analysis_request):
        client = make_genai_client(_server_error(), _server_error(), _server_error())
        agent = SoftSkillsAgent(client, max_retries=2)

        with patch("agents.common.utils.asyncio.sleep", new=AsyncMock()):
            result = await agent.analyze(TRANSCRIPT, analysis_request)

        assert result.degraded
        assert result.value == DEFAULT_SOFT_SKILLS
        assert result.reason.startswith("model call failed")
        assert client.aio.models.generate_content.await_count == 3

    @pytest.mark.asyncio
    async def test_client_error_is_not_retried(self, analysis_request):
        client = make_genai_client(_client_error(), SOFT_SKILLS_PAYLOAD)
        agent = SoftSkillsAgent(client, max_retries=2)

        result = await agent.analyze(TRANSCRIPT, analysis_request)

        assert result.degraded
        assert client.aio.models.generate_content.await_count == 1

    @pytest.mark.asyncio
    async def test_network_error_degrades(self, analysis_request):
        client = make_genai_client(httpx.ConnectError("connection refused"))
        agent = SoftSkillsAgent(client, max_retries=0)

        result = await agent.analyze(TRANSCRIPT, analysis_request)

        assert result.degraded

    @pytest.mark.asyncio
    async def test_dropped_connection_degrades(self, analysis_request):
        client = make_genai_client(aiohttp.ServerDisconnectedError())
        agent = SoftSkillsAgent(client, max_retries=0)

        result = await agent.analyze(TRANSCRIPT, analysis_request)

        assert result.degraded
        assert result.value == DEFAULT_SOFT_SKILLS
        assert result.reason.startswith("model call failed")

    @pytest.mark.asyncio
    async def test_dropped_connection_is_retried(self, analysis_request):
        client = make_genai_client(aiohttp.ClientConnectionError("reset by peer"), SOFT_SKILLS_PAYLOAD)
        agent = SoftSkillsAgent(client, max_retries=1)

        with patch("agents.common.utils.asyncio.sleep", new=AsyncMock()):
            result = await agent.analyze(TRANSCRIPT, analysis_request)

        assert not result.degraded
        assert client.aio.models.generate_content.await_count == 2

    @pytest.mark.asyncio
    async def test_timeout_is_raised(self, analysis_request):
        async def slow(**kwargs):
            await asyncio.sleep(10)

        client = make_genai_client()
        client.aio.models.generate_content = AsyncMock(side_effect=slow)
        agent = ContentAnalysisAgent(client, timeout_seconds=0.01, max_retries=0)

        with pytest.raises(ServiceTimeoutError) as exc_info:
            await agent.analyze(TRANSCRIPT, analysis_request)

        assert exc_info.value.operation == "content_analysis model call"

    def test_from_settings(self, test_settings):
        client = make_genai_client()

        agent = TechnicalSkillsAgent.from_settings(client, test_settings)

        assert agent.model == test_settings.analysis_model
        assert agent.timeout_seconds == test_settings.model_call_timeout_seconds
        assert agent.max_retries == test_settings.model_max_retries
