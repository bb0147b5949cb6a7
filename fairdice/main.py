"""fairdice FastAPI application."""
from fastapi import FastAPI

from fairdice.config import settings
from fairdice.config_hash import get_config_hash
from fairdice.errors import FairDiceError
from fairdice.logic.dice import entropy_bits, rank_dice
from fairdice.logic.rng import CountingSource, SystemSource
from fairdice.logic.sampler import BoundedUniformSampler
from fairdice.middleware import ErrorHandlerMiddleware
from fairdice.protocol import (
    Candidate,
    InitResponse,
    RankRequest,
    RankResponse,
    SampleRequest,
    SampleResponse,
)
from fairdice.telemetry import (
    telemetry_service,
    RankServedEvent,
    SampleRejectedEvent,
    SampleServedEvent,
)
from fairdice.validators import validate_rank_request, validate_sample_request


app = FastAPI(
    title="fairdice",
    version="0.1.0",
    description="Unbiased range sampling from bounded uniform sources",
)

app.add_middleware(ErrorHandlerMiddleware)


@app.get("/health")
async def health() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


@app.get("/init")
async def init() -> dict:
    """Return the die catalog and request limits."""
    return InitResponse().model_dump()


@app.post("/rank")
async def rank(body: RankRequest) -> dict:
    """
    POST /rank.

    Scores each catalog die against a range size, best first.
    """
    limit = validate_rank_request(body)
    catalog = body.catalog if body.catalog is not None else settings.dice_catalog
    ranked = rank_dice(limit, catalog)

    response = RankResponse(
        limit=str(limit),
        entropyBits=entropy_bits(limit),
        candidates=[
            Candidate(
                sides=die.sides,
                rolls=die.rolls,
                rerollPct=die.reroll_pct,
                averageRolls=die.average_rolls,
            )
            for die in ranked
        ],
    )

    best = ranked[0] if ranked else None
    telemetry_service.emit_rank_served(
        RankServedEvent(
            limit_bits=limit.bit_length(),
            catalog_size=len(ranked),
            best_sides=best.sides if best else None,
            best_average_rolls=best.average_rolls if best else None,
        )
    )

    return response.model_dump()


@app.post("/sample")
async def sample(body: SampleRequest) -> dict:
    """
    POST /sample.

    Draws count unbiased values in [0, maxInclusive] from OS randomness.
    A failed draw sequence returns an error, never a partial result.
    """
    modulus = body.modulus if body.modulus is not None else settings.system_modulus
    try:
        max_inclusive = validate_sample_request(body)
        sampler = BoundedUniformSampler(max_inclusive, modulus)
        source = CountingSource(SystemSource(modulus))
        values = sampler.draws(source, body.count)
    except FairDiceError as e:
        telemetry_service.emit_sample_rejected(
            SampleRejectedEvent(reason=e.code.value, modulus=modulus)
        )
        raise

    telemetry_service.emit_sample_served(
        SampleServedEvent(
            max_inclusive_bits=max_inclusive.bit_length(),
            modulus=modulus,
            kind=sampler.kind.value,
            count=body.count,
            draws_consumed=source.count,
            config_hash=get_config_hash(),
        )
    )

    return SampleResponse(
        maxInclusive=str(max_inclusive),
        modulus=modulus,
        kind=sampler.kind.value,
        values=[str(value) for value in values],
        drawsConsumed=source.count,
    ).model_dump()
