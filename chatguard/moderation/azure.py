"""
Azure AI Content Safety moderator.

This module handles communication with the Azure AI Content Safety
text analysis API and converts its severity levels into a Verdict.
"""

import asyncio
import json
import aiohttp
import logging
from datetime import datetime
from typing import Optional, Dict, Any, List

from ..errors import (
    BackendError, BackendAuthError, TransientBackendError,
    ConfigurationError, ModerationTimeoutError
)
from .base import Moderator, Verdict


logger = logging.getLogger(__name__)


class AzureModerator(Moderator):
    """
    HTTP client for the Azure AI Content Safety text:analyze operation.

    Severities are requested as FourSeverityLevels (0, 2, 4, 6) and
    divided by MAX_SEVERITY to produce scores in [0, 1].
    """

    name = "azure"

    API_VERSION = "2024-09-01"
    ANALYZE_PATH = "/contentsafety/text:analyze"
    CATEGORIES = ("Hate", "SelfHarm", "Sexual", "Violence")
    MAX_SEVERITY = 6
    MAX_TEXT_LENGTH = 10000

    CATEGORY_KEYS = {
        "Hate": "hate",
        "SelfHarm": "self_harm",
        "Sexual": "sexual",
        "Violence": "violence",
    }

    def __init__(self, endpoint: str, api_key: str, timeout: float = 10.0):
        """
        Initialize Azure moderator.

        Args:
            endpoint: Content Safety resource endpoint
                (e.g., "https://example.cognitiveservices.azure.com")
            api_key: Subscription key for the resource
            timeout: Request timeout in seconds

        Raises:
            ConfigurationError: If endpoint or API key is missing
        """
        if not endpoint:
            raise ConfigurationError("Azure endpoint is required")
        if not api_key:
            raise ConfigurationError("Azure API key is required")

        self.endpoint = endpoint.rstrip('/')
        self.api_key = api_key
        self.timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def close(self) -> None:
        """Close HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()

    def build_request(self, text: str) -> Dict[str, Any]:
        """Build the analyze request body."""
        return {
            "text": text[:self.MAX_TEXT_LENGTH],
            "categories": list(self.CATEGORIES),
            "outputType": "FourSeverityLevels",
        }

    async def _make_request(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        POST to the analyze endpoint and map failures onto the error taxonomy.

        Args:
            data: Request payload

        Returns:
            Response data as dictionary

        Raises:
            ModerationTimeoutError: If the request times out
            BackendAuthError: On 401/403
            TransientBackendError: On 429/5xx and connection errors
            BackendError: On any other non-200 status or a body that is not JSON
        """
        session = await self._get_session()
        url = f"{self.endpoint}{self.ANALYZE_PATH}"
        headers = {
            "Ocp-Apim-Subscription-Key": self.api_key,
            "Content-Type": "application/json",
        }

        try:
            async with session.post(url, params={"api-version": self.API_VERSION},
                                    json=data, headers=headers) as response:
                if response.status == 200:
                    try:
                        return await response.json()
                    except (aiohttp.ContentTypeError, json.JSONDecodeError) as e:
                        raise BackendError(f"Invalid response format from Content Safety: {e}") from e

                error_text = await response.text()
                message = f"Content Safety request failed with status {response.status}: {error_text}"
                if response.status in (401, 403):
                    raise BackendAuthError(message)
                if response.status == 429 or response.status >= 500:
                    raise TransientBackendError(message)
                raise BackendError(message)

        except asyncio.TimeoutError:
            logger.warning("Content Safety request timed out", extra={
                "endpoint": self.endpoint,
                "timeout": self.timeout
            })
            raise ModerationTimeoutError(f"Content Safety request timed out after {self.timeout}s")
        except aiohttp.ClientError as e:
            logger.error("Content Safety client error", extra={
                "endpoint": self.endpoint,
                "error": str(e)
            })
            raise TransientBackendError(f"Client error: {str(e)}")

    def parse_response(self, response: Dict[str, Any]) -> Verdict:
        """
        Convert a text:analyze response into a Verdict.

        Raises:
            BackendError: If the response has no category analysis
        """
        analysis: Optional[List[Dict[str, Any]]] = response.get("categoriesAnalysis")
        if analysis is None:
            raise BackendError("Invalid response format from Content Safety")

        categories = {}
        for item in analysis:
            name = item.get("category")
            if not name:
                continue
            severity = item.get("severity") or 0
            score = min(max(float(severity) / self.MAX_SEVERITY, 0.0), 1.0)
            categories[self.CATEGORY_KEYS.get(name, name.lower())] = score

        return Verdict(categories=categories)

    async def classify(self, text: str) -> Verdict:
        """
        Classify text with Azure AI Content Safety.

        Args:
            text: Raw message body

        Returns:
            Verdict with one score per analyzed category
        """
        if not text or not text.strip():
            return Verdict.safe()

        start_time = datetime.now()
        response = await self._make_request(self.build_request(text))
        verdict = self.parse_response(response)

        duration = (datetime.now() - start_time).total_seconds() * 1000
        logger.debug("Content classified", extra={
            "backend": self.name,
            "response_time_ms": round(duration, 2),
            "max_score": verdict.max_score
        })
        return verdict
