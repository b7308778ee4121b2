"""Base agent class for all Gemini-backed analysis stages."""

import logging
from abc import ABC, abstractmethod
from typing import Generic, Optional, TypeVar

import aiohttp
import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from pydantic import ValidationError as PydanticValidationError

from agents.common.prompts import ANALYTICAL_TONE, JSON_OUTPUT, VIDEO_COACH_ROLE
from agents.common.utils import parse_json_response, retry_with_backoff
from core.config import Settings
from core.exceptions import ModelParseError
from core.utils.timeouts import call_with_timeout
from pipeline.results import StageResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_INSTRUCTIONS = f"""{ANALYTICAL_TONE}

{VIDEO_COACH_ROLE}

{JSON_OUTPUT}"""

# Errors worth another attempt; everything else degrades immediately
TRANSIENT_MODEL_ERRORS = (genai_errors.ServerError, httpx.TransportError, aiohttp.ClientError)


def build_genai_client(settings: Settings) -> genai.Client:
    """Create the Gemini client shared by all stages of a pipeline."""
    return genai.Client(api_key=settings.google_api_key)


class BaseAgent(ABC, Generic[T]):
    """
    One prompt/response cycle against the generative model.

    Subclasses set ``name``, ``temperature`` and ``max_output_tokens``, and
    implement ``parse`` and ``default``. ``complete`` never raises for bad
    model output: it returns the default payload marked as degraded. Only a
    per-call timeout (``ServiceTimeoutError``) escapes.
    """

    name: str = "agent"
    temperature: float = 0.3
    max_output_tokens: int = 4000

    def __init__(
        self,
        client: genai.Client,
        model: str = "gemini-2.0-flash",
        timeout_seconds: float = 120.0,
        max_retries: int = 2,
        instructions: str = DEFAULT_INSTRUCTIONS,
    ):
        """Initialize the agent.

        Args:
            client: Gemini client (shared, read-only)
            model: Model identifier
            timeout_seconds: Bound for one model call
            max_retries: Retries for transient service errors
            instructions: System instructions for the agent
        """
        self.client = client
        self.model = model
        self.timeout_seconds = timeout_seconds
        self.max_retries = max_retries
        self.instructions = instructions

    @classmethod
    def from_settings(cls, client: genai.Client, settings: Settings) -> "BaseAgent[T]":
        return cls(
            client,
            model=settings.analysis_model,
            timeout_seconds=settings.model_call_timeout_seconds,
            max_retries=settings.model_max_retries,
        )

    @abstractmethod
    def parse(self, payload: object) -> T:
        """Validate decoded JSON into the stage's result type."""

    @abstractmethod
    def default(self) -> T:
        """Documented fallback payload for this stage."""

    async def run(self, prompt: str) -> Optional[str]:
        """Send a prompt and return the raw response text.

        Args:
            prompt: Rendered prompt

        Returns:
            Model response text
        """
        @retry_with_backoff(max_retries=self.max_retries, retry_on=TRANSIENT_MODEL_ERRORS)
        async def _generate() -> Optional[str]:
            response = await call_with_timeout(
                self.client.aio.models.generate_content(
                    model=self.model,
                    contents=prompt,
                    config=types.GenerateContentConfig(
                        system_instruction=self.instructions,
                        temperature=self.temperature,
                        max_output_tokens=self.max_output_tokens,
                        response_mime_type="application/json",
                    ),
                ),
                self.timeout_seconds,
                f"{self.name} model call",
            )
            return response.text

        return await _generate()

    def decode(self, text: Optional[str]) -> T:
        """Parse raw model text, raising ``ModelParseError`` on any mismatch."""
        payload = parse_json_response(text)
        if payload is None:
            raise ModelParseError(f"{self.name}: response is not valid JSON")
        try:
            return self.parse(payload)
        except (PydanticValidationError, ValueError, TypeError) as e:
            raise ModelParseError(f"{self.name}: response does not match schema: {e}", cause=e) from e

    async def complete(self, prompt: str) -> StageResult[T]:
        """Run the prompt and parse it, degrading to ``default()`` on failure."""
        try:
            text = await self.run(prompt)
        except (genai_errors.APIError, httpx.HTTPError, aiohttp.ClientError) as e:
            logger.error(f"{self.name} analysis failed, using fallback: {e}")
            return StageResult.fallback(self.name, self.default(), f"model call failed: {e}")

        try:
            value = self.decode(text)
        except ModelParseError as e:
            logger.warning(f"Failed to parse {self.name} response, using fallback: {e}")
            return StageResult.fallback(self.name, self.default(), e.message)

        return StageResult.ok(self.name, value)
