"""Bounded uniform sources: anything yielding uniform integers in [0, modulus)."""
import logging
import random
import secrets
import sys
from abc import ABC, abstractmethod
from collections import deque
from typing import Callable, Iterable, TextIO

from fairdice.errors import PreconditionViolation, SourceAborted, SourceExhausted

logger = logging.getLogger(__name__)


def check_modulus(modulus: int) -> int:
    """Reject moduli that cannot supply entropy."""
    if isinstance(modulus, bool) or not isinstance(modulus, int):
        raise PreconditionViolation(f"modulus must be an integer, got {modulus!r}")
    if modulus < 2:
        raise PreconditionViolation(f"modulus must be at least 2, got {modulus}")
    return modulus


class BoundedSource(ABC):
    """
    Bounded uniform source interface.

    Each call to draw() returns one integer uniformly distributed in
    [0, modulus). The modulus is fixed for the lifetime of the source.
    A source must not be shared between two in-flight draw sequences.
    """

    def __init__(self, modulus: int):
        self.modulus = check_modulus(modulus)

    @abstractmethod
    def draw(self) -> int:
        """Return the next uniform draw in [0, modulus)."""
        pass


class SystemSource(BoundedSource):
    """
    Production source backed by the OS cryptographic generator.

    Defaults to a modulus of 2**32, i.e. the generator is treated as a
    source of uniform 32-bit words.
    """

    def __init__(self, modulus: int = 2**32):
        super().__init__(modulus)

    def draw(self) -> int:
        return secrets.randbelow(self.modulus)


class SeededSource(BoundedSource):
    """
    Test/simulation source.

    Deterministic, fully controlled by seed.
    """

    def __init__(self, modulus: int, seed: int):
        super().__init__(modulus)
        self._rng = random.Random(seed)
        self.seed = seed

    def draw(self) -> int:
        return self._rng.randrange(self.modulus)


class SequenceSource(BoundedSource):
    """Replays a fixed sequence of draws, then reports exhaustion."""

    def __init__(self, modulus: int, values: Iterable[int]):
        super().__init__(modulus)
        self._values = deque(values)
        for value in self._values:
            if not 0 <= value < self.modulus:
                raise PreconditionViolation(
                    f"draw {value} outside [0, {self.modulus})"
                )
        self.consumed = 0

    @property
    def remaining(self) -> int:
        return len(self._values)

    def draw(self) -> int:
        if not self._values:
            raise SourceExhausted(
                f"sequence exhausted after {self.consumed} draws"
            )
        self.consumed += 1
        return self._values.popleft()


class CountingSource(BoundedSource):
    """Wraps another source and counts the draws taken from it."""

    def __init__(self, inner: BoundedSource):
        super().__init__(inner.modulus)
        self.inner = inner
        self.count = 0

    def draw(self) -> int:
        value = self.inner.draw()
        self.count += 1
        return value


class InteractiveDiceSource(BoundedSource):
    """
    Source fed by a human reporting physical die rolls.

    The human types a face in 1..modulus; it is shifted to 0..modulus-1.
    Unparseable or out-of-range input is reported and asked again. End of
    input or an interrupt aborts the whole draw sequence.
    """

    PROMPT = "Enter a dice roll, 1-{modulus}: "

    def __init__(
        self,
        modulus: int,
        reader: Callable[[str], str] = input,
        writer: TextIO | None = None,
    ):
        super().__init__(modulus)
        self._reader = reader
        self._writer = writer

    def _complain(self, message: str) -> None:
        print(message, file=self._writer or sys.stderr)

    def draw(self) -> int:
        prompt = self.PROMPT.format(modulus=self.modulus)
        while True:
            try:
                line = self._reader(prompt)
            except (EOFError, KeyboardInterrupt) as e:
                logger.info("Interactive dice input cancelled")
                raise SourceAborted("dice input cancelled") from e

            try:
                face = int(line.strip())
            except ValueError:
                self._complain("Parse error. Try again or ^C to cancel.")
                continue

            if 0 < face <= self.modulus:
                return face - 1
            self._complain(f"{face} out of range 1-{self.modulus}")
