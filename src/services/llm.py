"""LLM service for Ollama integration (text-only identification fallback)."""

import json
import logging
import re
from typing import Any

import httpx

from src.config import get_settings

logger = logging.getLogger(__name__)

_JSON_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)


def parse_json_response(text: str) -> dict[str, Any]:
    """Parse a model reply as a JSON object.

    Tolerates markdown code fences and prose around the object.
    """
    result = text.strip()
    if result.startswith("```json"):
        result = result[7:]
    if result.startswith("```"):
        result = result[3:]
    if result.endswith("```"):
        result = result[:-3]
    result = result.strip()

    try:
        return json.loads(result)
    except json.JSONDecodeError:
        match = _JSON_OBJECT_RE.search(result)
        if not match:
            raise
        return json.loads(match.group())


class LLMService:
    """Service for interacting with Ollama LLM."""

    def __init__(self) -> None:
        self.settings = get_settings()
        self.base_url = self.settings.ollama_base_url
        self.model = self.settings.llm_model
        self.timeout = 120.0  # 2 minutes for LLM responses

    async def generate(
        self,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float = 0.3,
        max_tokens: int = 2048,
    ) -> str:
        """Generate a response from the LLM."""
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(
                f"{self.base_url}/api/chat",
                json={
                    "model": self.model,
                    "messages": messages,
                    "stream": False,
                    "format": "json",
                    "options": {
                        "temperature": temperature,
                        "num_predict": max_tokens,
                    },
                },
            )
            response.raise_for_status()
            data = response.json()
            return data["message"]["content"]

    async def generate_json(
        self,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float = 0.1,
    ) -> dict[str, Any]:
        """Generate structured JSON response from the LLM."""
        result = None
        try:
            result = await self.generate(
                prompt=prompt,
                system_prompt=system_prompt,
                temperature=temperature,
            )
            return parse_json_response(result)
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to parse LLM response as JSON: {e}")
            logger.warning(f"Raw response: {result if result is not None else 'N/A'}")
            raise
        except httpx.HTTPError as e:
            logger.error(f"HTTP error calling Ollama: {e}")
            raise
