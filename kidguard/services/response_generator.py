"""
AI response generator client.

The tutoring model lives outside this service. The filtering pipeline only
needs ``generate(message, age_group, context) -> str``; the default
implementation posts the filtered message to ``AI_GENERATOR_URL``.
"""

import logging
from typing import Protocol

import httpx

from ..core.config import settings
from ..core.exceptions import ResponseGeneratorError
from ..core.types import AgeGroup, FilterContext

logger = logging.getLogger(__name__)


class ResponseGenerator(Protocol):
    async def generate(
        self, message: str, age_group: AgeGroup | None, context: FilterContext
    ) -> str: ...


class HttpResponseGenerator:
    """Calls the external generator over HTTP."""

    def __init__(
        self,
        url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url or settings.AI_GENERATOR_URL
        self.timeout = timeout or settings.AI_GENERATOR_TIMEOUT
        self.transport = transport

    async def generate(
        self, message: str, age_group: AgeGroup | None, context: FilterContext
    ) -> str:
        payload = {
            "message": message,
            "ageGroup": age_group.value if age_group else None,
            "subject": context.subject,
            "learningObjective": context.learning_objective,
        }
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport
            ) as client:
                response = await client.post(self.url, json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            logger.error(f"AI generator request failed: {type(e).__name__}: {e}")
            raise ResponseGeneratorError(f"AI generator request failed: {e}") from e
        except ValueError as e:
            raise ResponseGeneratorError("AI generator returned invalid JSON") from e

        content = None
        if isinstance(data, dict):
            content = data.get("content") or data.get("response")
        if not isinstance(content, str):
            raise ResponseGeneratorError("AI generator response has no content")
        return content
