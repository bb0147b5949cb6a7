"""Die selection: which physical die covers a range with the fewest rolls."""
import logging
import math
from dataclasses import dataclass
from typing import Any, Iterable

from fairdice.config import settings
from fairdice.errors import PreconditionViolation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CandidateDie:
    """
    A die type scored against a target range size.

    Fields:
        sides: face count.
        rolls: fewest rolls with sides ** rolls >= limit.
        reroll_pct: share of outcomes that overshoot the limit and are rerolled.
        average_rolls: rolls + rolls * reroll_pct.
    """

    sides: int
    rolls: int
    reroll_pct: float
    average_rolls: float

    @classmethod
    def from_sides_and_limit(cls, sides: int, limit: int) -> "CandidateDie":
        if sides < 2:
            raise PreconditionViolation(f"a die needs at least 2 sides, got {sides}")
        if limit < 0:
            raise PreconditionViolation(f"limit must be non-negative, got {limit}")

        rolls = 0
        total = 1
        while total < limit:
            total *= sides
            rolls += 1

        if limit == 0:
            reroll_pct = 0.0
        else:
            reroll_pct = (total - limit) / total

        return cls(
            sides=sides,
            rolls=rolls,
            reroll_pct=reroll_pct,
            average_rolls=rolls + rolls * reroll_pct,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "sides": self.sides,
            "rolls": self.rolls,
            "reroll_pct": self.reroll_pct,
            "average_rolls": self.average_rolls,
        }


def rank_dice(limit: int, catalog: Iterable[int] | None = None) -> list[CandidateDie]:
    """
    Score every die in catalog against limit, best first.

    Ordered by expected rolls, then by face count. Catalog entries with
    fewer than two sides are skipped.
    """
    if catalog is None:
        catalog = settings.dice_catalog

    options = []
    for sides in catalog:
        if sides < 2:
            logger.warning("Skipping die with %d sides", sides)
            continue
        options.append(CandidateDie.from_sides_and_limit(sides, limit))

    options.sort(key=lambda die: (die.average_rolls, die.sides))
    return options


def recommend_die(limit: int, catalog: Iterable[int] | None = None) -> CandidateDie | None:
    """Best die for limit, or None for an empty catalog."""
    ranked = rank_dice(limit, catalog)
    return ranked[0] if ranked else None


def entropy_bits(limit: int) -> float:
    """Bits of entropy in a uniform choice among limit outcomes."""
    if limit < 1:
        return 0.0
    return math.log2(limit)
