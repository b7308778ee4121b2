"""Shared fixtures and utilities for tests."""

import json
import os
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Settings are read at import time, so the environment is prepared before any
# application module is collected.
TEST_ENV = {
    # AWS/S3
    "AWS_ACCESS_KEY_ID": "testing",
    "AWS_SECRET_ACCESS_KEY": "testing",
    "AWS_REGION": "us-east-1",
    "AWS_S3_BUCKET": "test-bucket",
    # Database
    "DATABASE_URL": "sqlite+aiosqlite:///./reelcv_test.db",
    # Celery
    "CELERY_BROKER_URL": "memory://",
    "CELERY_RESULT_BACKEND": "cache+memory://",
    # Google
    "GOOGLE_API_KEY": "test-google-key",
    # Logging
    "JSON_LOGS": "false",
}
for _name, _value in TEST_ENV.items():
    os.environ.setdefault(_name, _value)

from core.config import Settings  # noqa: E402
from database.engine import Base, build_sessionmaker, init_db  # noqa: E402
from pipeline.schemas import AnalysisRequest  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def setup_test_env():
    """Keep the test environment variables in place for the whole session."""
    for name, value in TEST_ENV.items():
        os.environ.setdefault(name, value)


@pytest.fixture
def test_settings() -> Settings:
    """Settings with every service configured and no real waiting."""
    return Settings(
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
        aws_region="us-east-1",
        aws_s3_bucket="test-bucket",
        google_api_key="test-google-key",
        database_url="sqlite+aiosqlite://",
        transcription_max_attempts=5,
        transcription_base_delay_seconds=0,
        transcription_max_delay_seconds=0,
        model_max_retries=0,
        model_call_timeout_seconds=5,
        storage_call_timeout_seconds=5,
    )


# ==================== Requests ===================== #
def make_request_data(**overrides) -> dict:
    """Wire-form analysis request (camelCase keys)."""
    data = {
        "videoUrl": "https://cdn.example.com/videos/intro.mp4",
        "videoId": "video_123",
        "videoMetadata": {
            "title": "Full-stack developer introduction",
            "description": "Walkthrough of my recent projects",
            "category": "skills",
            "duration": 154,
            "candidateId": "candidate_42",
        },
        "analysisOptions": {
            "includePersonality": True,
            "includeBenchmarking": True,
            "focusAreas": ["technical-skills", "communication"],
            "industryContext": "software-development",
        },
    }
    data.update(overrides)
    return data


@pytest.fixture
def request_data() -> dict:
    return make_request_data()


@pytest.fixture
def analysis_request(request_data) -> AnalysisRequest:
    return AnalysisRequest.model_validate(request_data)


# ==================== Model payloads ===================== #
def skill_payload(name: str = "Python", confidence: float = 90, category: str = "programming",
                  demonstration: float = 80) -> dict:
    return {
        "skill": name,
        "category": category,
        "confidence": confidence,
        "evidence": [f"Explained {name} in a project"],
        "traits": {
            "proficiency": "advanced",
            "confidence": confidence,
            "practicalApplication": 85,
            "theoreticalKnowledge": 80,
            "realWorldExperience": 88,
            "communicationClarity": 84,
        },
        "demonstrationQuality": {
            "clarity": demonstration,
            "depth": demonstration,
            "examples": demonstration,
            "problemSolving": demonstration,
        },
    }


CONTENT_PAYLOAD = {
    "videoQuality": {
        "audioClarity": 88,
        "visualQuality": 84,
        "engagement": 81,
        "pacing": 79,
        "structure": 86,
        "accessibility": {"hasSubtitles": False, "audioLevel": 82, "visualContrast": 87},
    },
    "personalityInsights": {
        "traits": {
            "openness": 80,
            "conscientiousness": 85,
            "extraversion": 65,
            "agreeableness": 78,
            "neuroticism": 30,
        },
        "workStyle": {"collaborative": 82, "independent": 76, "detailOriented": 88, "bigPicture": 70},
        "motivators": ["Learning", "Craftsmanship"],
        "communicationStyle": "analytical",
    },
    "keyTopics": [
        {"topic": "Web APIs", "relevance": 92, "mentions": 5, "context": ["FastAPI", "REST"]},
        {"topic": "Testing", "relevance": 77, "mentions": 2, "context": ["pytest"]},
    ],
}

SOFT_SKILLS_PAYLOAD = {
    "communication": {"clarity": 84, "confidence": 80, "engagement": 78, "articulation": 83},
    "leadership": {"initiative": 76, "decisionMaking": 79, "teamwork": 85, "mentoring": 70},
    "problemSolving": {
        "analyticalThinking": 88,
        "creativity": 74,
        "systematicApproach": 86,
        "adaptability": 80,
    },
    "professionalism": {"presentation": 83, "timeManagement": 78, "reliability": 87, "ethics": 90},
}

RECOMMENDATIONS_PAYLOAD = [
    {
        "type": "technical",
        "priority": "high",
        "title": "Show a live debugging session",
        "description": "Walk through fixing a real bug to demonstrate problem solving",
        "actionItems": ["Pick a recent bug", "Narrate the investigation"],
    },
    {
        "type": "presentation",
        "priority": "medium",
        "title": "Tighten the introduction",
        "description": "Lead with your strongest project in the first 20 seconds",
        "actionItems": ["Script the opening", "Cut filler words"],
    },
    {
        "type": "career",
        "priority": "low",
        "title": "Mention team outcomes",
        "description": "Quantify the impact your work had on your team",
        "actionItems": ["Add one metric per project"],
    },
]


def genai_response(payload) -> SimpleNamespace:
    """Stand-in for a ``GenerateContentResponse``; only ``text`` is read."""
    text = payload if isinstance(payload, str) else json.dumps(payload)
    return SimpleNamespace(text=text)


def make_genai_client(*responses) -> MagicMock:
    """
    Gemini client whose ``aio.models.generate_content`` returns the given
    responses in order. Exceptions in ``responses`` are raised instead.
    """
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock(
        side_effect=[
            r if isinstance(r, BaseException) else genai_response(r) for r in responses
        ]
    )
    return client


# ==================== AWS ===================== #
def make_aws_client(**methods) -> AsyncMock:
    """aioboto3 client usable as ``async with session.client(...) as client``."""
    mock_client = AsyncMock()
    for name, value in methods.items():
        setattr(mock_client, name, value)
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=None)
    return mock_client


TRANSCRIBE_DOCUMENT = {
    "jobName": "transcription_candidate_42",
    "results": {
        "transcripts": [{"transcript": "Hi, I build web APIs with Python."}],
        "items": [
            {
                "start_time": "1.20",
                "end_time": "1.60",
                "alternatives": [{"confidence": "0.97", "content": "I"}],
                "type": "pronunciation",
            },
            {
                "start_time": "0.00",
                "end_time": "0.40",
                "alternatives": [{"confidence": "0.99", "content": "Hi"}],
                "type": "pronunciation",
            },
            {
                "alternatives": [{"confidence": "0.0", "content": ","}],
                "type": "punctuation",
            },
            {
                "start_time": "1.60",
                "end_time": "1.90",
                "alternatives": [{"confidence": "0.95", "content": "build"}],
                "type": "pronunciation",
            },
        ],
    },
}


# ==================== Database ===================== #
@pytest_asyncio.fixture
async def db_engine():
    """In-memory SQLite engine with the schema created."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_db(engine)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def sessionmaker(db_engine) -> async_sessionmaker:
    return build_sessionmaker(db_engine)


def make_result(analysis_id: str = "analysis_test", candidate_id: str = "candidate_42", **overrides):
    """Completed ``VideoAnalysisResult`` built from the stage defaults."""
    from agents.content.agent import DEFAULT_CONTENT_ANALYSIS
    from agents.recommendations.agent import DEFAULT_RECOMMENDATIONS
    from agents.soft_skills.agent import DEFAULT_SOFT_SKILLS
    from agents.technical.agent import DEFAULT_TECHNICAL_SKILLS
    from core.integrations.transcribe import FALLBACK_TRANSCRIPT
    from core.utils.datetime import now
    from pipeline.schemas import VideoAnalysisResult
    from pipeline.scoring import score

    scores = score(DEFAULT_TECHNICAL_SKILLS, DEFAULT_SOFT_SKILLS, DEFAULT_CONTENT_ANALYSIS)
    fields = dict(
        id=analysis_id,
        video_id="video_123",
        candidate_id=candidate_id,
        analysis_date=now(),
        processing_time_seconds=12.5,
        transcript=FALLBACK_TRANSCRIPT,
        technical_skills=DEFAULT_TECHNICAL_SKILLS,
        soft_skills=DEFAULT_SOFT_SKILLS,
        video_quality=DEFAULT_CONTENT_ANALYSIS.video_quality,
        personality_insights=DEFAULT_CONTENT_ANALYSIS.personality_insights,
        key_topics=DEFAULT_CONTENT_ANALYSIS.key_topics,
        recommendations=DEFAULT_RECOMMENDATIONS,
        overall_score=scores.overall,
        category_scores=scores.categories,
    )
    fields.update(overrides)
    return VideoAnalysisResult(**fields)
