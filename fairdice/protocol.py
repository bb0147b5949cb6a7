"""Protocol models for the HTTP surface.

Arbitrary precision integers travel as decimal strings so no JSON client
has to round them.
"""
from pydantic import BaseModel, Field

from fairdice.config import settings


# === Request Models ===


class RankRequest(BaseModel):
    """POST /rank request body."""

    limit: str = Field(..., description="Range size as a decimal string")
    catalog: list[int] | None = Field(
        default=None, description="Face counts to consider; defaults to diceCatalog"
    )


class SampleRequest(BaseModel):
    """POST /sample request body."""

    maxInclusive: str = Field(..., description="Inclusive upper bound as a decimal string")
    count: int = Field(default=1, description="Number of values to draw")
    modulus: int | None = Field(
        default=None, description="Source modulus; defaults to systemModulus"
    )


# === Response Models ===


class InitResponse(BaseModel):
    """GET /init response."""

    protocolVersion: str = settings.protocol_version
    diceCatalog: list[int] = Field(default_factory=lambda: list(settings.dice_catalog))
    systemModulus: int = settings.system_modulus
    maxSampleCount: int = settings.max_sample_count
    maxValueDigits: int = settings.max_value_digits


class Candidate(BaseModel):
    """One ranked die."""

    sides: int
    rolls: int
    rerollPct: float
    averageRolls: float


class RankResponse(BaseModel):
    """POST /rank response."""

    protocolVersion: str = settings.protocol_version
    limit: str
    entropyBits: float
    candidates: list[Candidate]


class SampleResponse(BaseModel):
    """POST /sample response."""

    protocolVersion: str = settings.protocol_version
    maxInclusive: str
    modulus: int
    kind: str
    values: list[str]
    drawsConsumed: int
