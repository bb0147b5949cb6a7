#!/usr/bin/env python3
"""
Uniformity audit for the bounded uniform sampler.

Runs a seeded sampling simulation, bins the values, and checks the
chi-square statistic against a critical value. Writes a one-row CSV.

Usage:
    python -m scripts.uniformity_audit --max-inclusive 1000 --modulus 6 --samples 100000 --seed AUDIT_2025 --out out/audit_1000_6.csv
    python -m scripts.uniformity_audit --max-inclusive 5 --modulus 8 --samples 60000 --seed AUDIT_2025 --out out/audit_5_8.csv --word-bits 32
"""
import argparse
import csv
import hashlib
import math
import subprocess
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from fairdice.config_hash import get_config_hash
from fairdice.logic.rng import CountingSource, SeededSource
from fairdice.logic.sampler import BoundedUniformSampler


# Upper-tail z score for the chi-square critical value (p ~= 0.001)
DEFAULT_Z = 3.09
DEFAULT_MAX_BINS = 1024


@dataclass
class AuditStats:
    """Statistics accumulated during an audit run."""
    max_inclusive: int
    modulus: int
    kind: str = ""
    samples: int = 0
    draws_consumed: int = 0
    out_of_range: int = 0
    bins: int = 0
    counts: list[int] = field(default_factory=list)
    expected: list[float] = field(default_factory=list)
    min_value: int | None = None
    max_value: int | None = None

    @property
    def draws_per_sample(self) -> float:
        return self.draws_consumed / self.samples if self.samples > 0 else 0.0


def seed_to_int(seed_str: str) -> int:
    """Convert string seed to integer deterministically."""
    return int(hashlib.sha256(seed_str.encode()).hexdigest(), 16) % (2**31)


def bucket_sizes(range_size: int, bins: int) -> list[int]:
    """
    Number of values in each bucket when value * bins // range_size picks it.

    Sizes differ by at most one.
    """
    edges = [-(-b * range_size // bins) for b in range(bins + 1)]
    return [edges[b + 1] - edges[b] for b in range(bins)]


def chi_square(counts: list[int], expected: list[float]) -> float:
    """Pearson chi-square statistic."""
    return sum((c - e) ** 2 / e for c, e in zip(counts, expected) if e > 0)


def chi_square_critical(df: int, z: float = DEFAULT_Z) -> float:
    """Wilson-Hilferty approximation of the upper chi-square quantile."""
    if df < 1:
        return 0.0
    h = 2.0 / (9.0 * df)
    return df * (1.0 - h + z * math.sqrt(h)) ** 3


def run_audit(
    max_inclusive: int,
    modulus: int,
    samples: int,
    seed_str: str,
    word_bits: int | None = None,
    max_bins: int = DEFAULT_MAX_BINS,
    verbose: bool = False,
) -> AuditStats:
    """
    Run a seeded sampling simulation.

    Args:
        max_inclusive: Inclusive upper bound of the sampled range
        modulus: Modulus of the simulated bounded source
        samples: Number of values to draw
        seed_str: Seed string for reproducibility
        word_bits: Emulate a native-width sampler
        max_bins: Ranges wider than this are grouped into buckets
        verbose: Print progress

    Returns:
        AuditStats with aggregated results
    """
    sampler = BoundedUniformSampler(max_inclusive, modulus, word_bits)
    source = CountingSource(SeededSource(modulus, seed=seed_to_int(seed_str)))

    range_size = max_inclusive + 1
    bins = min(range_size, max_bins)
    stats = AuditStats(max_inclusive=max_inclusive, modulus=modulus, kind=sampler.kind.value)
    stats.bins = bins
    stats.counts = [0] * bins
    stats.expected = [samples * size / range_size for size in bucket_sizes(range_size, bins)]

    progress_interval = max(1, samples // 100)
    stream = sampler.stream(source)

    for i in range(samples):
        if verbose and i % progress_interval == 0:
            pct = (i / samples) * 100
            print(f"\rProgress: {pct:.1f}%", end="", flush=True)

        value = next(stream)
        stats.samples += 1
        if not 0 <= value <= max_inclusive:
            stats.out_of_range += 1
            continue

        stats.counts[value * bins // range_size] += 1
        if stats.min_value is None or value < stats.min_value:
            stats.min_value = value
        if stats.max_value is None or value > stats.max_value:
            stats.max_value = value

    if verbose:
        print("\rProgress: 100.0%")

    stats.draws_consumed = source.count
    return stats


def get_git_commit() -> str:
    """Get current git commit hash (short)."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--short", "HEAD"],
            capture_output=True,
            text=True,
            cwd=Path(__file__).parent.parent,
            timeout=5,
        )
        if result.returncode == 0:
            return result.stdout.strip()
    except (subprocess.TimeoutExpired, FileNotFoundError):
        pass
    return "unknown"


def get_timestamp_iso() -> str:
    """Get ISO 8601 UTC timestamp."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def audit_passed(stats: AuditStats, z: float = DEFAULT_Z) -> bool:
    """No value left the range and the chi-square statistic is below critical."""
    if stats.out_of_range:
        return False
    return chi_square(stats.counts, stats.expected) <= chi_square_critical(stats.bins - 1, z)


def generate_csv(stats: AuditStats, seed_str: str, output_path: str, z: float = DEFAULT_Z) -> None:
    """Generate audit CSV file."""
    statistic = chi_square(stats.counts, stats.expected)
    critical = chi_square_critical(stats.bins - 1, z)

    # Column order: timestamp, git_commit, config_hash first
    row = {
        "timestamp": get_timestamp_iso(),
        "git_commit": get_git_commit(),
        "config_hash": get_config_hash(),
        "max_inclusive": str(stats.max_inclusive),
        "modulus": stats.modulus,
        "kind": stats.kind,
        "samples": stats.samples,
        "seed": seed_str,
        "bins": stats.bins,
        "draws_per_sample": f"{stats.draws_per_sample:.4f}",
        "out_of_range": stats.out_of_range,
        "chi_square": f"{statistic:.4f}",
        "chi_square_critical": f"{critical:.4f}",
        "passed": audit_passed(stats, z),
    }

    output_file = Path(output_path)
    output_file.parent.mkdir(parents=True, exist_ok=True)

    with open(output_file, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=row.keys())
        writer.writeheader()
        writer.writerow(row)

    print(f"CSV written to: {output_path}")


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Uniformity audit for the bounded uniform sampler")
    parser.add_argument(
        "--max-inclusive",
        type=int,
        required=True,
        help="Inclusive upper bound of the sampled range",
    )
    parser.add_argument(
        "--modulus",
        type=int,
        required=True,
        help="Modulus of the simulated bounded source",
    )
    parser.add_argument(
        "--samples",
        type=int,
        required=True,
        help="Number of values to draw",
    )
    parser.add_argument(
        "--seed",
        type=str,
        required=True,
        help="Seed string for reproducibility",
    )
    parser.add_argument(
        "--out",
        type=str,
        required=True,
        help="Output CSV path",
    )
    parser.add_argument(
        "--word-bits",
        type=int,
        default=None,
        help="Emulate a native-width sampler of this many bits",
    )
    parser.add_argument(
        "--max-bins",
        type=int,
        default=DEFAULT_MAX_BINS,
        help="Group wider ranges into this many buckets",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Show progress",
    )

    args = parser.parse_args()

    print(
        f"Running audit: max_inclusive={args.max_inclusive}, modulus={args.modulus}, "
        f"samples={args.samples}, seed={args.seed}"
    )
    print(f"Config hash: {get_config_hash()}")

    stats = run_audit(
        max_inclusive=args.max_inclusive,
        modulus=args.modulus,
        samples=args.samples,
        seed_str=args.seed,
        word_bits=args.word_bits,
        max_bins=args.max_bins,
        verbose=args.verbose,
    )

    generate_csv(stats, args.seed, args.out)

    statistic = chi_square(stats.counts, stats.expected)
    critical = chi_square_critical(stats.bins - 1)
    print(f"\nSummary:")
    print(f"  Kind: {stats.kind}")
    print(f"  Samples: {stats.samples}")
    print(f"  Draws per sample: {stats.draws_per_sample:.4f}")
    print(f"  Bins: {stats.bins}")
    print(f"  Chi-square: {statistic:.4f} (critical {critical:.4f})")

    if not audit_passed(stats):
        print(f"ASSERTION FAILED: out_of_range={stats.out_of_range}, chi_square={statistic:.4f} > {critical:.4f}")
        return 1

    print(f"\nASSERTION PASSED: distribution consistent with uniform")
    return 0


if __name__ == "__main__":
    sys.exit(main())
