"""
LLM Client
===========
Single-shot text generation via Gemini generateContent.
Falls back to Groq's OpenAI-compatible chat API for 60s when Gemini
returns 429.
"""

from __future__ import annotations

import logging
import time
from typing import Optional

import httpx

from config import GEMINI_BASE, GEMINI_MODEL, GROQ_BASE, GROQ_MODEL, HTTP_TIMEOUT, get_key

logger = logging.getLogger(__name__)

NO_RESPONSE = "No response generated"


class GeminiError(Exception):
    pass


class RateLimitError(GeminiError):
    pass


def extract_candidate_text(payload: dict) -> str:
    """First candidate's first part text, or the no-response placeholder."""
    candidates = payload.get("candidates") if isinstance(payload, dict) else None
    if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
        return NO_RESPONSE
    content = candidates[0].get("content")
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list) or not parts or not isinstance(parts[0], dict):
        return NO_RESPONSE
    text = parts[0].get("text")
    return text if isinstance(text, str) else NO_RESPONSE


class GeminiClient:
    """
    Calls Gemini generateContent with a single user prompt.
    Automatically falls back to Groq Llama if Gemini returns 429
    and a Groq key is configured.
    """

    RATE_LIMIT_COOLDOWN = 60.0

    def __init__(
        self,
        api_key: Optional[str] = None,
        groq_key: Optional[str] = None,
        model: str = GEMINI_MODEL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else get_key("GEMINI_API_KEY")
        self.groq_key = groq_key if groq_key is not None else get_key("GROQ_API_KEY")
        self.model = model
        self._transport = transport
        self._rate_limited_until = 0.0

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=HTTP_TIMEOUT, transport=self._transport)

    async def generate_response(self, prompt: str) -> str:
        if self._rate_limited_until > time.time() and self.groq_key:
            logger.warning("Gemini rate limited, using Groq fallback")
            return await self._generate_groq(prompt)

        try:
            return await self._generate_gemini(prompt)
        except RateLimitError:
            if not self.groq_key:
                raise
            self._rate_limited_until = time.time() + self.RATE_LIMIT_COOLDOWN
            logger.warning(f"Gemini 429: switching to Groq for {self.RATE_LIMIT_COOLDOWN:.0f}s")
            return await self._generate_groq(prompt)

    async def _generate_gemini(self, prompt: str) -> str:
        if not self.api_key:
            raise GeminiError("Gemini API key is missing.")

        url = f"{GEMINI_BASE}/{self.model}:generateContent"
        payload = {"contents": [{"parts": [{"text": prompt}]}]}

        try:
            async with self._client() as client:
                response = await client.post(url, params={"key": self.api_key}, json=payload)
        except httpx.HTTPError as e:
            raise GeminiError(f"Gemini request error: {e}") from e

        if response.status_code == 429:
            raise RateLimitError("Gemini rate limit hit")
        if not 200 <= response.status_code < 300:
            raise GeminiError(f"Bad server response ({response.status_code})")

        try:
            data = response.json()
        except ValueError as e:
            raise GeminiError(f"Invalid JSON from Gemini: {e}") from e
        return extract_candidate_text(data)

    async def _generate_groq(self, prompt: str) -> str:
        headers = {
            "Authorization": f"Bearer {self.groq_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": GROQ_MODEL,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": 0.7,
        }
        try:
            async with self._client() as client:
                response = await client.post(f"{GROQ_BASE}/chat/completions", headers=headers, json=payload)
        except httpx.HTTPError as e:
            raise GeminiError(f"Groq request error: {e}") from e

        if not 200 <= response.status_code < 300:
            raise GeminiError(f"Groq fallback failed ({response.status_code})")
        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise GeminiError(f"Invalid response from Groq: {e}") from e
        if not isinstance(content, str):
            raise GeminiError(f"Invalid response from Groq: content is {type(content).__name__}")
        return content
