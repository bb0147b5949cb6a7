"""
Uniformity audit script tests.

Runs short seeded audits and checks the statistics helpers and CSV output.
"""
import csv
import math

import pytest

from fairdice.config_hash import get_config_hash
from scripts.uniformity_audit import (
    audit_passed,
    bucket_sizes,
    chi_square,
    chi_square_critical,
    generate_csv,
    run_audit,
    seed_to_int,
)


class TestStatistics:
    """Chi-square helpers."""

    def test_chi_square_of_perfect_fit_is_zero(self):
        assert chi_square([10, 10, 10], [10.0, 10.0, 10.0]) == 0.0

    def test_chi_square_value(self):
        assert chi_square([12, 8], [10.0, 10.0]) == pytest.approx(0.8)

    @pytest.mark.parametrize(
        "df,expected",
        [
            (10, 29.59),
            (100, 149.45),
            (1000, 1143.9),
        ],
    )
    def test_critical_value_close_to_table(self, df, expected):
        """Wilson-Hilferty against published p=0.001 quantiles."""
        assert chi_square_critical(df) == pytest.approx(expected, rel=0.01)

    @pytest.mark.parametrize("range_size,bins", [(10, 10), (1001, 7), (7776**3, 1024), (5, 2)])
    def test_bucket_sizes(self, range_size, bins):
        sizes = bucket_sizes(range_size, bins)
        assert len(sizes) == bins
        assert sum(sizes) == range_size
        assert max(sizes) - min(sizes) <= 1

    def test_seed_to_int_is_stable(self):
        assert seed_to_int("AUDIT_2025") == seed_to_int("AUDIT_2025")
        assert 0 <= seed_to_int("AUDIT_2025") < 2**31


class TestRunAudit:
    """Short seeded audit runs."""

    def test_small_range(self):
        stats = run_audit(max_inclusive=5, modulus=8, samples=6000, seed_str="AUDIT_2025")
        assert stats.kind == "power_of_two"
        assert stats.samples == 6000
        assert sum(stats.counts) == 6000
        assert stats.out_of_range == 0
        assert stats.min_value == 0
        assert stats.max_value == 5
        assert audit_passed(stats)

    def test_decomposed_range(self):
        stats = run_audit(max_inclusive=1000, modulus=6, samples=30000, seed_str="AUDIT_2025")
        assert stats.kind == "non_power_of_two"
        assert stats.bins == 1001
        assert audit_passed(stats)
        # at least the four base-6 digits of 1000 per value
        assert stats.draws_per_sample >= 4.0

    def test_large_range_is_bucketed(self):
        max_inclusive = 7776**6 - 1
        stats = run_audit(
            max_inclusive=max_inclusive,
            modulus=2**32,
            samples=20000,
            seed_str="AUDIT_2025",
            max_bins=100,
        )
        assert stats.bins == 100
        assert sum(stats.expected) == pytest.approx(20000)
        assert audit_passed(stats)

    def test_native_width_matches_arbitrary_precision(self):
        wide = run_audit(max_inclusive=250, modulus=10, samples=2000, seed_str="PARITY")
        narrow = run_audit(
            max_inclusive=250, modulus=10, samples=2000, seed_str="PARITY", word_bits=32
        )
        assert wide.counts == narrow.counts
        assert wide.draws_consumed == narrow.draws_consumed

    def test_biased_counts_fail(self):
        stats = run_audit(max_inclusive=9, modulus=10, samples=1000, seed_str="AUDIT_2025")
        stats.counts = [1000] + [0] * 9
        assert not audit_passed(stats)


class TestGenerateCsv:
    """CSV output."""

    def test_csv_row(self, tmp_path):
        stats = run_audit(max_inclusive=9, modulus=6, samples=1000, seed_str="CSV")
        out = tmp_path / "audit" / "audit_9_6.csv"
        generate_csv(stats, "CSV", str(out))

        with open(out) as f:
            rows = list(csv.DictReader(f))
        assert len(rows) == 1
        row = rows[0]
        assert list(row)[:3] == ["timestamp", "git_commit", "config_hash"]
        assert row["config_hash"] == get_config_hash()
        assert row["max_inclusive"] == "9"
        assert row["modulus"] == "6"
        assert row["samples"] == "1000"
        assert row["out_of_range"] == "0"
        assert row["passed"] == str(audit_passed(stats))
        assert math.isfinite(float(row["chi_square"]))
