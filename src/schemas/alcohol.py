"""Alcohol and identification schemas."""

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

MAX_CANDIDATES = 5

_NUMBER_RE = re.compile(r"\d+(?:\.\d+)?")


class AlcoholInfo(BaseModel):
    """Identified bottle details, as produced by the AI service or typed by a user."""

    model_config = ConfigDict(from_attributes=True, extra="ignore")

    name: str = Field(..., min_length=1, max_length=255)
    type: str = Field(..., min_length=1, max_length=50)
    subtype: str | None = Field(None, max_length=255)
    brand: str | None = Field(None, max_length=255)
    producer: str | None = Field(None, max_length=255)
    origin_country: str | None = Field(None, max_length=100)
    origin_region: str | None = Field(None, max_length=100)
    alcohol_percentage: float | None = None
    price_range: str | None = Field(None, max_length=100)
    characteristics: list[str] | None = None

    @field_validator(
        "subtype",
        "brand",
        "producer",
        "origin_country",
        "origin_region",
        "price_range",
        mode="before",
    )
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        """Treat empty strings the same as a missing value."""
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("alcohol_percentage", mode="before")
    @classmethod
    def parse_percentage(cls, value: Any) -> Any:
        """Accept '16%' or '15-16度' style strings from the model."""
        if value is None or isinstance(value, int | float):
            return value or None
        if isinstance(value, str):
            match = _NUMBER_RE.search(value)
            return float(match.group()) if match else None
        return None

    @field_validator("characteristics", mode="before")
    @classmethod
    def normalize_characteristics(cls, value: Any) -> Any:
        """Drop empty lists and stray non-string entries."""
        if not value:
            return None
        if isinstance(value, str):
            return [value]
        return [str(item) for item in value if item] or None


class AlcoholResponse(AlcoholInfo):
    """Stored alcohol."""

    id: int


class IdentifyRequest(BaseModel):
    """Ask the AI service to identify a bottle from a photo or a typed name."""

    image_url: str | None = Field(None, max_length=2048)
    image_base64: str | None = None
    media_type: str = Field("image/jpeg", max_length=50)
    text: str | None = Field(None, max_length=255)
    type: str | None = Field(None, max_length=50)
    rejected_name: str | None = Field(None, max_length=255)

    @model_validator(mode="after")
    def require_input(self) -> "IdentifyRequest":
        """At least one of image_url, image_base64 or text must be provided."""
        if not (self.image_url or self.image_base64 or (self.text and self.text.strip())):
            raise ValueError("image_url, image_base64, or text is required")
        return self

    @property
    def has_image(self) -> bool:
        """Check if this query carries an image."""
        return bool(self.image_url or self.image_base64)


class AnalyzeResult(BaseModel):
    """Identification outcome: one confident match or a bounded candidate list."""

    unique: bool
    result: AlcoholInfo | None = None
    candidates: list[AlcoholInfo] = Field(default_factory=list, max_length=MAX_CANDIDATES)

    @model_validator(mode="after")
    def check_shape(self) -> "AnalyzeResult":
        """A unique result carries `result`; otherwise at least one candidate."""
        if self.unique and self.result is None:
            raise ValueError("unique result is missing")
        if not self.unique and not self.candidates:
            raise ValueError("no candidates returned")
        return self
