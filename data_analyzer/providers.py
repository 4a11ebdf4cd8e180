"""Provider clients for OpenAI and Claude, and the parallel invoker."""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

from .config import (
    OPENAI_API_KEY,
    OPENAI_API_URL,
    OPENAI_MODEL,
    OPENAI_LABEL,
    CLAUDE_API_KEY,
    CLAUDE_API_URL,
    CLAUDE_MODEL,
    CLAUDE_LABEL,
    CLAUDE_MAX_OUTPUT_TOKENS,
    ANTHROPIC_VERSION,
    PROVIDER_TIMEOUT,
)
from .models import Failure, Prompt, ProviderOutcome, Success, Unavailable

logger = logging.getLogger(__name__)

_JSON_ONLY_REMINDER = (
    "\n\nIMPORTANT: Respond with valid JSON only. "
    "Do not add any text before or after the JSON object."
)


def extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    """
    Parse the first balanced {...} span found in free text.

    Braces inside JSON strings are ignored while scanning. Returns None when
    there is no balanced span or the span is not a valid JSON object.
    """
    if not text:
        return None

    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escape = False
    for idx in range(start, len(text)):
        char = text[idx]
        if in_string:
            if escape:
                escape = False
            elif char == "\\":
                escape = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                try:
                    parsed = json.loads(text[start:idx + 1])
                except json.JSONDecodeError:
                    return None
                return parsed if isinstance(parsed, dict) else None
    return None


class ProviderClient:
    """
    Sends a single prompt to one model endpoint.

    `complete` never raises for provider problems: a missing key is reported
    as Unavailable, and transport, status, parse and shape errors as Failure.
    """

    name = "provider"

    def __init__(
        self,
        api_key: Optional[str],
        model: str,
        api_url: str,
        timeout: float = PROVIDER_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.api_url = api_url
        self.timeout = timeout
        self.transport = transport

    @property
    def available(self) -> bool:
        return bool(self.api_key)

    def _headers(self) -> Dict[str, str]:
        raise NotImplementedError

    def _build_payload(self, prompt: Prompt) -> Dict[str, Any]:
        raise NotImplementedError

    def _extract_text(self, data: Any) -> Optional[str]:
        raise NotImplementedError

    def _parse_json(self, text: str) -> ProviderOutcome:
        raise NotImplementedError

    def _fail(self, reason: str) -> Failure:
        logger.warning("%s call failed: %s", self.name, reason)
        return Failure(reason)

    async def complete(self, prompt: Prompt) -> ProviderOutcome:
        if not self.available:
            logger.info("%s: API key not configured, skipping call", self.name)
            return Unavailable()

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    self.api_url,
                    headers=self._headers(),
                    json=self._build_payload(prompt),
                )
        except httpx.HTTPError as e:
            return self._fail(f"transport error: {type(e).__name__}: {e}")
        except (ValueError, TypeError) as e:
            return self._fail(f"could not encode request: {type(e).__name__}: {e}")

        if not response.is_success:
            return self._fail(f"HTTP {response.status_code}: {response.text[:500]}")

        try:
            data = response.json()
        except ValueError:
            return self._fail("response body is not valid JSON")

        text = self._extract_text(data)
        if not text or not text.strip():
            return self._fail("response has no text content")

        if not prompt.json_mode:
            return Success(text)
        return self._parse_json(text)


class OpenAIClient(ProviderClient):
    """Chat completions client. JSON mode relies on response_format."""

    name = OPENAI_LABEL

    def __init__(self, api_key: Optional[str], model: str = OPENAI_MODEL, **kwargs):
        kwargs.setdefault("api_url", OPENAI_API_URL)
        super().__init__(api_key, model, **kwargs)

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def _build_payload(self, prompt: Prompt) -> Dict[str, Any]:
        messages: List[Dict[str, str]] = []
        if prompt.system:
            messages.append({"role": "system", "content": prompt.system})
        messages.append({"role": "user", "content": prompt.user})

        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": prompt.temperature,
            "max_tokens": prompt.max_tokens,
        }
        if prompt.json_mode:
            payload["response_format"] = {"type": "json_object"}
        return payload

    def _extract_text(self, data: Any) -> Optional[str]:
        if not isinstance(data, dict):
            return None
        choices = data.get("choices")
        if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
            return None
        message = choices[0].get("message")
        if not isinstance(message, dict):
            return None
        content = message.get("content")
        return content if isinstance(content, str) else None

    def _parse_json(self, text: str) -> ProviderOutcome:
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as e:
            return self._fail(f"content is not valid JSON: {e}")
        if not isinstance(parsed, dict):
            return self._fail("content JSON is not an object")
        return Success(parsed)


class ClaudeClient(ProviderClient):
    """
    Messages API client.

    Claude does not guarantee a bare JSON body, so in JSON mode the first
    balanced {...} span is extracted from the text before parsing.
    """

    name = CLAUDE_LABEL

    def __init__(
        self,
        api_key: Optional[str],
        model: str = CLAUDE_MODEL,
        max_output_tokens: int = CLAUDE_MAX_OUTPUT_TOKENS,
        **kwargs,
    ):
        kwargs.setdefault("api_url", CLAUDE_API_URL)
        super().__init__(api_key, model, **kwargs)
        self.max_output_tokens = max_output_tokens

    def _headers(self) -> Dict[str, str]:
        return {
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "Content-Type": "application/json",
        }

    def _build_payload(self, prompt: Prompt) -> Dict[str, Any]:
        user_text = prompt.user
        if prompt.json_mode:
            user_text += _JSON_ONLY_REMINDER

        payload: Dict[str, Any] = {
            "model": self.model,
            "max_tokens": min(prompt.max_tokens, self.max_output_tokens),
            "temperature": prompt.temperature,
            "messages": [{"role": "user", "content": user_text}],
        }
        if prompt.system:
            payload["system"] = prompt.system
        return payload

    def _extract_text(self, data: Any) -> Optional[str]:
        if not isinstance(data, dict):
            return None
        blocks = data.get("content")
        if not isinstance(blocks, list) or not blocks or not isinstance(blocks[0], dict):
            return None
        text = blocks[0].get("text")
        return text if isinstance(text, str) else None

    def _parse_json(self, text: str) -> ProviderOutcome:
        parsed = extract_json_object(text)
        if parsed is None:
            return self._fail("no JSON object found in response text")
        return Success(parsed)


def build_provider_clients() -> Tuple[OpenAIClient, ClaudeClient]:
    """Create the primary (OpenAI) and secondary (Claude) clients from configuration."""
    if not OPENAI_API_KEY:
        logger.warning("OPENAI_API_KEY not set. Create a .env file with OPENAI_API_KEY=...")
    if not CLAUDE_API_KEY:
        logger.warning("CLAUDE_API_KEY not set.")
    return OpenAIClient(OPENAI_API_KEY), ClaudeClient(CLAUDE_API_KEY)


def describe_outcome(outcome: ProviderOutcome) -> str:
    if isinstance(outcome, Success):
        return "success"
    if isinstance(outcome, Unavailable):
        return "unavailable"
    return f"failure ({outcome.reason})"


async def invoke_both(
    primary: ProviderClient,
    secondary: ProviderClient,
    prompt: Prompt,
) -> Tuple[ProviderOutcome, ProviderOutcome]:
    """
    Send the same prompt to both providers concurrently and wait for both.

    One provider failing never cancels the other. Outcomes are returned in
    (primary, secondary) order regardless of which call finished first.
    """
    clients = (primary, secondary)
    results = await asyncio.gather(
        *(client.complete(prompt) for client in clients),
        return_exceptions=True,
    )

    outcomes: List[ProviderOutcome] = []
    for client, result in zip(clients, results):
        if isinstance(result, BaseException):
            logger.error("%s raised unexpectedly", client.name, exc_info=result)
            result = Failure(f"unexpected error: {type(result).__name__}: {result}")
        logger.info("%s: %s", client.name, describe_outcome(result))
        outcomes.append(result)

    if all(isinstance(outcome, Unavailable) for outcome in outcomes):
        logger.warning("No provider credentials configured")
    elif not any(isinstance(outcome, Success) for outcome in outcomes):
        logger.warning("No provider returned a usable result")

    return outcomes[0], outcomes[1]
