"""
Pydantic schemas for classifier output and run arguments.

ClassifiedSignal is the contract both classification paths must satisfy;
model output is only trusted after it validates here.
"""

import re
from typing import List, Literal, Optional
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.taxonomy import TRACK_KEYS

HeatLevel = Literal["HOT", "NOTABLE", "QUIET"]
StreamKey = Literal["HEADLINERS", "TOOLCHAIN", "MODELS_METHODS", "OPS_RUNTIME", "WILDS"]
ConfidenceLevel = Literal["VERIFIED", "UNVERIFIED"]

SENTENCE_SPLIT = re.compile(r"[.!?]")
EDITION_DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"

MAX_SUMMARY_LENGTH = 240
MAX_RATIONALE_LENGTH = 420
MAX_RATIONALE_SENTENCES = 3
MAX_CITATIONS = 8


def is_absolute_url(value):
    """True for any URL with a scheme, not only http(s)."""
    try:
        parts = urlsplit(value)
        parts.port
    except ValueError:
        return False
    return bool(parts.scheme) and bool(parts.netloc or parts.path)


class ClassifiedSignal(BaseModel):
    """One classified signal, as produced by either classification path."""

    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    title: str = Field(min_length=1, max_length=220)
    summary: str = Field(min_length=1, max_length=MAX_SUMMARY_LENGTH)
    rationale: str = Field(min_length=1, max_length=MAX_RATIONALE_LENGTH)
    heat: HeatLevel
    track_key: str
    track_label: str = Field(min_length=3, max_length=80)
    stream_key: StreamKey
    stream_label: str = Field(min_length=3, max_length=80)
    confidence: ConfidenceLevel
    tier: int = Field(ge=1, le=3)
    citations: List[str] = Field(min_length=1, max_length=MAX_CITATIONS)

    @field_validator("track_key")
    @classmethod
    def _known_track(cls, value):
        if value not in TRACK_KEYS:
            raise ValueError(f"Unknown track key: {value}")
        return value

    @field_validator("rationale")
    @classmethod
    def _short_rationale(cls, value):
        sentences = [part.strip() for part in SENTENCE_SPLIT.split(value) if part.strip()]
        if len(sentences) > MAX_RATIONALE_SENTENCES:
            raise ValueError("Rationale must be 3 sentences or fewer.")
        return value

    @field_validator("citations")
    @classmethod
    def _unique_urls(cls, value):
        if len(set(value)) != len(value):
            raise ValueError("Citations must be unique")
        bad = [url for url in value if not is_absolute_url(url)]
        if bad:
            raise ValueError(f"Citations must be absolute URLs: {bad[:3]}")
        return value


class IngestionArgs(BaseModel):
    """Arguments accepted by the run trigger."""

    date: Optional[str] = Field(default=None, pattern=EDITION_DATE_PATTERN)
    triggered_by: str = Field(default="manual", min_length=2, max_length=100)
    max_items: Optional[int] = Field(default=None, gt=0, le=250)

    @field_validator("triggered_by", mode="before")
    @classmethod
    def _strip(cls, value):
        if value is None:
            return "manual"
        return str(value).strip()


SourceType = Literal["RSS", "GITHUB_RELEASES", "NPM_UPDATES", "PYPI_UPDATES", "REDDIT_RSS", "CUSTOM_RSS"]


class SourceSeed(BaseModel):
    """A source definition from config/sources.yaml."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=2, max_length=120)
    type: SourceType
    identifier: str = Field(min_length=2, max_length=300)
    provider_label: str = Field(min_length=2, max_length=120)
    tier: int = Field(ge=1, le=3)
    enabled: bool = True


class ModelClassification(ClassifiedSignal):
    """ClassifiedSignal as accepted from the model: terse text is rejected."""

    title: str = Field(min_length=6, max_length=220)
    summary: str = Field(min_length=20, max_length=MAX_SUMMARY_LENGTH)
    rationale: str = Field(min_length=20, max_length=MAX_RATIONALE_LENGTH)
