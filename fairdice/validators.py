"""Request validators for the HTTP surface."""
from fairdice.config import settings
from fairdice.errors import ErrorCode, FairDiceError
from fairdice.protocol import RankRequest, SampleRequest


def parse_big_uint(value: str, field: str) -> int:
    """
    Parse a non-negative decimal string of bounded length.

    Raises INVALID_REQUEST for signs, separators, non-digits or too many digits.
    """
    text = value.strip()
    if not text or not text.isascii() or not text.isdigit():
        raise FairDiceError(
            ErrorCode.INVALID_REQUEST,
            f"{field} must be a non-negative decimal integer.",
        )
    if len(text) > settings.max_value_digits:
        raise FairDiceError(
            ErrorCode.INVALID_REQUEST,
            f"{field} has {len(text)} digits. Allowed: {settings.max_value_digits}",
        )
    return int(text)


def validate_catalog(catalog: list[int]) -> None:
    """Every die offered to the selector needs at least two sides."""
    if not catalog:
        raise FairDiceError(ErrorCode.INVALID_REQUEST, "catalog must not be empty.")
    bad = [sides for sides in catalog if sides < 2]
    if bad:
        raise FairDiceError(
            ErrorCode.PRECONDITION_VIOLATION,
            f"catalog entries need at least 2 sides, got {bad}",
        )


def validate_rank_request(request: RankRequest) -> int:
    """Run all validations on a rank request; returns the parsed limit."""
    limit = parse_big_uint(request.limit, "limit")
    if request.catalog is not None:
        validate_catalog(request.catalog)
    return limit


def validate_sample_request(request: SampleRequest) -> int:
    """Run all validations on a sample request; returns the parsed bound."""
    max_inclusive = parse_big_uint(request.maxInclusive, "maxInclusive")
    if not 1 <= request.count <= settings.max_sample_count:
        raise FairDiceError(
            ErrorCode.INVALID_REQUEST,
            f"count {request.count} not allowed. "
            f"Allowed: 1..{settings.max_sample_count}",
        )
    if request.modulus is not None and request.modulus < 2:
        raise FairDiceError(
            ErrorCode.PRECONDITION_VIOLATION,
            f"modulus must be at least 2, got {request.modulus}",
        )
    if request.modulus is not None and request.modulus > settings.system_modulus:
        raise FairDiceError(
            ErrorCode.INVALID_REQUEST,
            f"modulus {request.modulus} not allowed. "
            f"Allowed: 2..{settings.system_modulus}",
        )
    return max_inclusive
