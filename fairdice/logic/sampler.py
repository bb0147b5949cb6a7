"""
Unbiased sampling of arbitrary ranges from a bounded uniform source.

A reformulation of Lumbroso's Fast Dice Roller described in
'Optimal Discrete Uniform Generation from Coin Flips'
(https://arxiv.org/abs/1304.1916), derived from the RNDINT pseudocode on
Peter Occil's website:
https://peteroupc.github.io/randomfunc.html#RNDINT_Random_Integers_in_0_N

Ranges are Python ints, so dictionary_size ** length sized targets work
without any special handling. Setting word_bits emulates a fixed-width
implementation: accumulator widths are checked up front and an
ArithmeticOverflow is raised instead of wrapping.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterator

from fairdice.errors import ArithmeticOverflow, PreconditionViolation
from fairdice.logic.rng import BoundedSource, check_modulus

logger = logging.getLogger(__name__)


class SamplerKind(str, Enum):
    """How a (max_inclusive, modulus) pair is sampled."""

    ZERO = "zero"
    DIRECT = "direct"
    POWER_OF_TWO = "power_of_two"
    NON_POWER_OF_TWO = "non_power_of_two"


@dataclass(frozen=True)
class _Level:
    """One base-modulus digit of a range wider than a single draw."""

    cx: int
    max_inclusive: int


@dataclass
class _BitState:
    """Accumulators for the bit-by-bit method, reset for every value."""

    x: int = 1
    y: int = 0
    draw: int = 0
    bits_left: int = 0


class BoundedUniformSampler:
    """
    Sampler handle bound to one (max_inclusive, modulus) pair.

    Classification and decomposition happen once here; every call to
    sample() then produces an independent value in [0, max_inclusive]
    with every value equally likely. No state survives between values.
    """

    def __init__(self, max_inclusive: int, modulus: int, word_bits: int | None = None):
        if isinstance(max_inclusive, bool) or not isinstance(max_inclusive, int):
            raise PreconditionViolation(
                f"max_inclusive must be an integer, got {max_inclusive!r}"
            )
        if max_inclusive < 0:
            raise PreconditionViolation(
                f"max_inclusive must be non-negative, got {max_inclusive}"
            )

        self.modulus = check_modulus(modulus)
        self.max_inclusive = max_inclusive
        self.word_bits = word_bits
        self.modulus_bits = modulus.bit_length() - 1

        if max_inclusive == 0:
            self.kind = SamplerKind.ZERO
        elif max_inclusive == modulus - 1:
            self.kind = SamplerKind.DIRECT
        elif modulus & (modulus - 1) == 0:
            self.kind = SamplerKind.POWER_OF_TWO
        else:
            self.kind = SamplerKind.NON_POWER_OF_TWO

        self._levels: list[_Level] = []
        self._leaf: BoundedUniformSampler | None = None
        self._accept_below = 0

        if self.kind == SamplerKind.NON_POWER_OF_TWO:
            if max_inclusive < modulus:
                # Draws below the largest multiple of n fall into whole
                # blocks of size n, so value % n is uniform over them.
                n = max_inclusive + 1
                self._accept_below = modulus - modulus % n
            else:
                limit = max_inclusive
                while limit >= modulus:
                    cx = limit // modulus + 1
                    self._levels.append(_Level(cx=cx, max_inclusive=limit))
                    limit = cx - 1
                self._leaf = BoundedUniformSampler(limit, modulus, word_bits)

        if word_bits is not None:
            self._check_width(word_bits)

        logger.debug(
            "Sampler ready: max_inclusive_bits=%d modulus=%d kind=%s levels=%d",
            max_inclusive.bit_length(),
            modulus,
            self.kind.value,
            len(self._levels),
        )

    def __repr__(self) -> str:
        return (
            f"BoundedUniformSampler(max_inclusive={self.max_inclusive}, "
            f"modulus={self.modulus}, kind={self.kind.value})"
        )

    def _check_width(self, word_bits: int) -> None:
        """Fail fast if any accumulator could exceed word_bits bits."""
        if isinstance(word_bits, bool) or not isinstance(word_bits, int) or word_bits < 1:
            raise PreconditionViolation(f"word_bits must be a positive integer, got {word_bits!r}")

        # x never exceeds twice the bound before folding back; y < x.
        widest = self.modulus - 1
        if self.kind == SamplerKind.POWER_OF_TWO:
            widest = max(widest, 2 * self.max_inclusive)
        for level in self._levels:
            widest = max(widest, level.cx * self.modulus - 1)

        if widest.bit_length() > word_bits:
            raise ArithmeticOverflow(
                f"accumulator needs {widest.bit_length()} bits, "
                f"native width is {word_bits}"
            )

    def _check_source(self, source: BoundedSource) -> None:
        if source.modulus != self.modulus:
            raise PreconditionViolation(
                f"source modulus {source.modulus} does not match sampler modulus {self.modulus}"
            )

    def sample(self, source: BoundedSource) -> int:
        """Draw one unbiased value in [0, max_inclusive] from source."""
        self._check_source(source)
        return self._sample(source)

    def stream(self, source: BoundedSource) -> Iterator[int]:
        """Lazily yield independent values; never ends on its own."""
        self._check_source(source)
        while True:
            yield self._sample(source)

    def draws(self, source: BoundedSource, count: int) -> list[int]:
        """Draw count independent values."""
        self._check_source(source)
        return [self._sample(source) for _ in range(count)]

    def _sample(self, source: BoundedSource) -> int:
        if self.kind == SamplerKind.ZERO:
            return 0
        if self.kind == SamplerKind.DIRECT:
            return source.draw()
        if self.kind == SamplerKind.POWER_OF_TWO:
            return self._power_of_two(source)
        if self._levels:
            return self._decompose(source)
        return self._single_draw(source)

    def _power_of_two(self, source: BoundedSource) -> int:
        """
        Bit-by-bit Lumbroso.

        Each draw supplies modulus_bits fresh bits, least significant first.
        y is uniform over [0, x); once x passes the bound either y is
        accepted or both are folded back by the range size, keeping the
        surplus entropy instead of discarding it.
        """
        bound = self.max_inclusive
        state = _BitState()
        while True:
            if state.bits_left == 0:
                state.draw = source.draw()
                state.bits_left = self.modulus_bits

            state.x *= 2
            state.y = state.y * 2 + (state.draw & 1)
            state.draw >>= 1
            state.bits_left -= 1

            if state.x > bound:
                if state.y <= bound:
                    return state.y
                state.x -= bound + 1
                state.y -= bound + 1

    def _single_draw(self, source: BoundedSource) -> int:
        n = self.max_inclusive + 1
        while True:
            value = source.draw()
            if value < n:
                return value
            if value < self._accept_below:
                return value % n

    def _decompose(self, source: BoundedSource) -> int:
        """
        Combine cx * high + low one level at a time.

        highs holds the pending high digit of each level from the top down.
        A rejection at some level drops that level's digit and everything
        below it is drawn again; the levels above keep their digits.
        """
        levels = self._levels
        highs: list[int] = []
        while True:
            while len(highs) < len(levels):
                highs.append(source.draw())

            value = self._leaf._sample(source)
            while highs:
                level = levels[len(highs) - 1]
                value = level.cx * highs.pop() + value
                if value > level.max_inclusive:
                    break
            else:
                return value


def sample(
    max_inclusive: int,
    modulus: int,
    source: BoundedSource,
    word_bits: int | None = None,
) -> int:
    """Draw one unbiased value in [0, max_inclusive] from source."""
    return BoundedUniformSampler(max_inclusive, modulus, word_bits).sample(source)
