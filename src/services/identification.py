"""Bottle identification using Claude Vision, with an Ollama fallback for text queries."""

import base64
import json
import logging
from typing import Any

import anthropic
import httpx
from pydantic import ValidationError

from src.config import get_settings
from src.schemas.alcohol import MAX_CANDIDATES, AlcoholInfo, AnalyzeResult, IdentifyRequest
from src.services.identification_prompts import (
    get_image_prompt,
    get_system_prompt,
    get_text_prompt,
)
from src.services.llm import LLMService, parse_json_response

logger = logging.getLogger(__name__)


class IdentificationError(Exception):
    """Raised when the AI service cannot produce an identification."""


def normalize_analyze_response(data: Any) -> AnalyzeResult:
    """Convert a raw model payload into an AnalyzeResult.

    Older replies were a bare AlcoholInfo without the `unique` flag; those
    are treated as a unique match. Candidates beyond the cap and entries
    missing a name or type are dropped.
    """
    if not isinstance(data, dict):
        raise IdentificationError("Unexpected identification response")

    if "unique" not in data:
        data = {"unique": True, "result": data}

    candidates = []
    for raw in (data.get("candidates") or [])[:MAX_CANDIDATES]:
        try:
            candidates.append(AlcoholInfo.model_validate(raw))
        except ValidationError as e:
            logger.warning(f"Skipping malformed candidate {raw!r}: {e}")

    result = None
    if data.get("result"):
        try:
            result = AlcoholInfo.model_validate(data["result"])
        except ValidationError as e:
            logger.warning(f"Malformed identification result: {e}")

    unique = bool(data["unique"]) and result is not None
    if not unique and not candidates and result is not None:
        candidates = [result]

    try:
        return AnalyzeResult(
            unique=unique,
            result=result if unique else None,
            candidates=[] if unique else candidates,
        )
    except ValidationError as e:
        raise IdentificationError("The AI service could not identify this alcohol") from e


class IdentificationService:
    """Service for identifying alcohol from photos or typed names."""

    def __init__(self, llm_service: LLMService | None = None) -> None:
        settings = get_settings()
        self.api_key = settings.anthropic_api_key
        self.model = settings.vision_model
        self.llm_service = llm_service or LLMService()

    @property
    def is_configured(self) -> bool:
        """Check if the Anthropic API is configured."""
        return bool(self.api_key)

    async def analyze(self, request: IdentifyRequest) -> AnalyzeResult:
        """Identify an alcohol.

        Args:
            request: Photo (URL or base64) or typed name, optionally with the
                name of a previous answer the user rejected

        Returns:
            AnalyzeResult with either one unique match or up to 5 candidates

        Raises:
            IdentificationError: If the service is unavailable or its reply is unusable
        """
        system_prompt = get_system_prompt(request.rejected_name)

        try:
            if request.has_image:
                if not self.is_configured:
                    raise IdentificationError("Image identification is not configured")
                image_data, media_type = await self._load_image(request)
                content = [
                    {
                        "type": "image",
                        "source": {"type": "base64", "media_type": media_type, "data": image_data},
                    },
                    {"type": "text", "text": get_image_prompt(request.rejected_name)},
                ]
                data = parse_json_response(await self._complete(system_prompt, content))
            else:
                prompt = get_text_prompt(request.text.strip(), request.type, request.rejected_name)
                if self.is_configured:
                    content = [{"type": "text", "text": prompt}]
                    data = parse_json_response(await self._complete(system_prompt, content))
                else:
                    data = await self.llm_service.generate_json(prompt, system_prompt=system_prompt)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse identification response as JSON: {e}")
            raise IdentificationError("Failed to parse the identification response") from e
        except anthropic.APIError as e:
            logger.error(f"Anthropic API error during identification: {e}")
            raise IdentificationError("The AI service is unavailable, please try again") from e
        except httpx.HTTPError as e:
            logger.error(f"HTTP error during identification: {e}")
            raise IdentificationError("The AI service is unavailable, please try again") from e

        result = normalize_analyze_response(data)
        if result.unique:
            logger.info(f"Identified {result.result.name}")
        else:
            logger.info(f"Identification returned {len(result.candidates)} candidates")
        return result

    async def _load_image(self, request: IdentifyRequest) -> tuple[str, str]:
        """Return (base64 data, media type) for the request's image."""
        if request.image_base64:
            data = request.image_base64
            # Strip a data URL prefix such as "data:image/jpeg;base64,"
            if data.startswith("data:") and "," in data:
                data = data.split(",", 1)[1]
            return data, request.media_type

        async with httpx.AsyncClient(timeout=30.0) as client:
            response = await client.get(request.image_url)
            response.raise_for_status()
        media_type = response.headers.get("content-type", "image/jpeg").split(";")[0]
        return base64.standard_b64encode(response.content).decode("utf-8"), media_type

    async def _complete(self, system_prompt: str, content: list[dict[str, Any]]) -> str:
        """Send one message to Claude and return the text reply."""
        client = anthropic.AsyncAnthropic(api_key=self.api_key)
        message = await client.messages.create(
            model=self.model,
            max_tokens=4096,
            system=system_prompt,
            messages=[{"role": "user", "content": content}],
        )
        return message.content[0].text.strip()
