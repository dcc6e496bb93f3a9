"""
Claude Messages API client used as the default content generator.
"""

import asyncio
import json
from typing import Any, Awaitable, Callable, Dict, Optional

import aiohttp

from ..models.errors import ContentGenerationError
from ..utils.config import ClaudeConfig, get_config
from ..utils.logging import get_logger

logger = get_logger(__name__)

# async (system_prompt, user_prompt) -> parsed JSON object
ContentGenerator = Callable[[str, str], Awaitable[Dict[str, Any]]]

_STATUS_MESSAGES = {
    401: "Invalid API key. Please check your Claude API key in Settings.",
    429: "Rate limit exceeded. Please try again in a moment.",
    500: "Claude API server error. Please try again.",
}


def extract_json_string(raw: str) -> str:
    """
    Strip markdown code fences and cut the text down to its outermost JSON object.
    """
    text = raw.strip()

    if text.startswith("```json"):
        text = text[7:]
    elif text.startswith("```"):
        text = text[3:]

    if text.endswith("```"):
        text = text[:-3]

    text = text.strip()

    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        text = text[start:end + 1]

    return text


def error_for_status(status: int, error_data: Dict[str, Any]) -> ContentGenerationError:
    """Build the error raised for a non-2xx API response."""
    error_info = error_data.get("error") if isinstance(error_data.get("error"), dict) else {}
    error_type = error_info.get("type") or "api_error"
    message = _STATUS_MESSAGES.get(status) or error_info.get("message") or f"API request failed: {status}"
    return ContentGenerationError(message, error_type=error_type, status=status)


class ClaudeClient:
    """
    Thin async wrapper around the Anthropic Messages API.

    Instances are callable with ``(system_prompt, user_prompt)`` so they can
    be handed to agents wherever a content generator is expected.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        config: Optional[ClaudeConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.config = config or get_config().claude
        self.api_key = api_key or self.config.api_key
        self._session = session

    async def __call__(self, system_prompt: str, user_prompt: str) -> Dict[str, Any]:
        return await self.generate(system_prompt, user_prompt)

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: Optional[int] = None,
        expect_json: bool = True,
    ) -> Dict[str, Any]:
        """
        Send one prompt pair and return the parsed reply.

        Args:
            system_prompt: Prompt defining the model's behaviour
            user_prompt: Task description and data
            max_tokens: Generation limit; defaults to the configured value
            expect_json: Parse the reply as JSON; otherwise return ``{"text": ...}``

        Returns:
            Dict[str, Any]: Parsed JSON object, or the raw text wrapper

        Raises:
            ContentGenerationError: On a missing key, HTTP error, timeout or unparseable reply
        """
        if not self.api_key:
            raise ContentGenerationError(
                "Claude API key not found. Please add it in Settings or set CLAUDE_API_KEY.",
                error_type="authentication_error",
            )

        payload = {
            "model": self.config.model,
            "max_tokens": max_tokens or self.config.max_tokens,
            "system": system_prompt,
            "messages": [{"role": "user", "content": user_prompt}],
        }
        headers = {
            "Content-Type": "application/json",
            "x-api-key": self.api_key,
            "anthropic-version": self.config.api_version,
        }

        try:
            if self._session is not None:
                data = await self._post(self._session, payload, headers)
            else:
                timeout = aiohttp.ClientTimeout(total=self.config.timeout_seconds)
                async with aiohttp.ClientSession(timeout=timeout) as session:
                    data = await self._post(session, payload, headers)
        except asyncio.TimeoutError:
            raise ContentGenerationError("Claude API request timed out", error_type="timeout") from None
        except aiohttp.ClientError as e:
            raise ContentGenerationError(f"Claude API request failed: {e}", error_type="network_error") from e

        text = next(
            (block.get("text") for block in data.get("content") or []
             if isinstance(block, dict) and block.get("type") == "text"),
            None,
        )
        if not text:
            raise ContentGenerationError("No text content in Claude response", error_type="invalid_response")

        if not expect_json:
            return {"text": text}

        try:
            parsed = json.loads(extract_json_string(text))
        except ValueError:
            logger.error("Failed to parse Claude response", preview=text[:1000])
            raise ContentGenerationError(
                "Failed to parse JSON response from Claude", error_type="parse_error"
            ) from None

        if not isinstance(parsed, dict):
            raise ContentGenerationError("Claude response is not a JSON object", error_type="parse_error")
        return parsed

    async def _post(self, session: aiohttp.ClientSession, payload: Dict[str, Any],
                    headers: Dict[str, str]) -> Dict[str, Any]:
        async with session.post(self.config.api_url, json=payload, headers=headers) as response:
            if response.status >= 400:
                try:
                    error_data = await response.json(content_type=None)
                except (aiohttp.ContentTypeError, ValueError):
                    error_data = {}
                error = error_for_status(response.status, error_data if isinstance(error_data, dict) else {})
                logger.error("Claude API error", status=response.status, error_type=error.error_type)
                raise error

            return await response.json(content_type=None)
