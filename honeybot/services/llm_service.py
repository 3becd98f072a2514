"""Provider-agnostic LLM service — OpenAI, LM Studio, and Ollama.

Provider URLs are centralized in honeybot.config.settings:
    OPENAI_URL   — OpenAI endpoint (default https://api.openai.com)
    OLLAMA_URL   — Ollama endpoint (default http://localhost:11434)
    LMSTUDIO_URL — LM Studio endpoint (default http://localhost:1234)

Uses a module-level shared httpx.AsyncClient for connection pooling.
"""

from __future__ import annotations

import re
import time

import httpx

from honeybot.config import settings
from honeybot.utils.logger import logger

# Shared async HTTP client — reused across all LLM calls for connection pooling.
# Created lazily on first use.
_shared_client: httpx.AsyncClient | None = None


async def _get_shared_client() -> httpx.AsyncClient:
    """Get or create the shared httpx.AsyncClient."""
    global _shared_client  # noqa: PLW0603
    if _shared_client is None or _shared_client.is_closed:
        _shared_client = httpx.AsyncClient(
            timeout=httpx.Timeout(connect=10.0, read=60.0, write=30.0, pool=30.0),
        )
    return _shared_client


class LLMService:
    """Sends chat completion requests to an OpenAI-compatible API or Ollama."""

    def __init__(self, client: httpx.AsyncClient | None = None) -> None:
        self.provider = settings.LLM_PROVIDER
        self.base_url = settings.LLM_BASE_URL  # Computed property, already stripped
        self.model = settings.LLM_MODEL
        self.temperature = settings.LLM_TEMPERATURE
        self.api_key = settings.OPENAI_API_KEY
        self._client = client

    async def _http(self) -> httpx.AsyncClient:
        if self._client is not None:
            return self._client
        return await _get_shared_client()

    async def chat(
        self,
        system: str,
        user: str,
        *,
        response_format: str = "json",
        max_tokens: int | None = None,
    ) -> str:
        """Send a chat completion request and return the raw text response.

        Raises httpx errors on transport failure or non-2xx status, and
        ValueError when the body is not the provider's response shape;
        callers decide what the fallback is.
        """
        messages = [
            {"role": "system", "content": system},
            {"role": "user", "content": user},
        ]

        if self.provider == "ollama":
            return await self._call_ollama(messages, response_format, max_tokens)
        # Both "openai" and "lmstudio" use the OpenAI-compatible API
        return await self._call_openai(messages, response_format, max_tokens)

    async def _call_ollama(
        self,
        messages: list[dict],
        response_format: str,
        max_tokens: int | None,
    ) -> str:
        """Call the Ollama /api/chat endpoint."""
        url = f"{self.base_url}/api/chat"
        payload: dict = {
            "model": self.model,
            "messages": messages,
            "stream": False,
            "options": {"temperature": self.temperature},
        }
        if response_format == "json":
            payload["format"] = "json"
        if max_tokens:
            payload["options"]["num_predict"] = max_tokens

        t0 = time.perf_counter()
        client = await self._http()
        resp = await client.post(url, json=payload)
        resp.raise_for_status()
        data = resp.json()
        message = data.get("message") if isinstance(data, dict) else None
        if not isinstance(message, dict):
            raise ValueError(f"unexpected Ollama response: {str(data)[:200]}")
        content = message.get("content") or ""

        logger.debug(
            "Ollama request DONE → %.2fs, %d chars",
            time.perf_counter() - t0, len(content),
        )
        return content

    async def _call_openai(
        self,
        messages: list[dict],
        response_format: str,
        max_tokens: int | None,
    ) -> str:
        """Call an OpenAI-compatible /v1/chat/completions endpoint."""
        url = f"{self.base_url}/v1/chat/completions"
        payload: dict = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
        }
        if max_tokens:
            payload["max_tokens"] = max_tokens

        # LM Studio does NOT support response_format — omit it entirely.
        if response_format == "json" and self.provider != "lmstudio":
            payload["response_format"] = {"type": "json_object"}

        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        t0 = time.perf_counter()
        client = await self._http()
        resp = await client.post(url, json=payload, headers=headers)

        if resp.status_code >= 400:
            logger.error(
                "OpenAI endpoint returned %d: %s",
                resp.status_code, resp.text[:500],
            )
        resp.raise_for_status()

        data = resp.json()
        try:
            content = data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as e:
            raise ValueError(f"unexpected completion response: {str(data)[:200]}") from e
        if not isinstance(content, str):
            raise ValueError(f"non-text completion content: {type(content).__name__}")
        logger.debug(
            "OpenAI request DONE → %.2fs, %d chars",
            time.perf_counter() - t0, len(content),
        )
        return content

    @staticmethod
    def clean_json_response(raw: str) -> str:
        """Strip markdown code fences and extract the FIRST complete JSON object.

        LLMs often wrap their JSON in ```json ... ``` markers or add chatter
        around it. Brace-depth counting pulls out only the first {...} object.
        """
        cleaned = re.sub(r"```(?:json)?\s*", "", raw)
        cleaned = re.sub(r"```\s*$", "", cleaned)
        cleaned = cleaned.strip()

        start = cleaned.find("{")
        if start == -1:
            return cleaned  # No JSON object at all

        depth = 0
        in_string = False
        escape_next = False

        for i in range(start, len(cleaned)):
            ch = cleaned[i]

            if escape_next:
                escape_next = False
                continue
            if ch == "\\":
                escape_next = True
                continue
            if ch == '"':
                in_string = not in_string
                continue
            if in_string:
                continue

            if ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return cleaned[start : i + 1]

        # Incomplete object (truncated) — return what we have
        return cleaned[start:]

    async def health_check(self) -> dict:
        """Check connectivity to the LLM backend."""
        path = "/api/tags" if self.provider == "ollama" else "/v1/models"
        headers: dict[str, str] = {}
        if self.api_key and self.provider != "ollama":
            headers["Authorization"] = f"Bearer {self.api_key}"
        try:
            client = await self._http()
            resp = await client.get(f"{self.base_url}{path}", headers=headers)
            resp.raise_for_status()
            return {
                "status": "ok",
                "provider": self.provider,
                "active_url": self.base_url,
                "configured_model": self.model,
            }
        except httpx.HTTPError as e:
            return {
                "status": "error",
                "provider": self.provider,
                "active_url": self.base_url,
                "error": str(e),
            }
