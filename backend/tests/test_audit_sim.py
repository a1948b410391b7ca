"""Audit simulation script tests."""
import csv

import pytest

from scripts.audit_sim import (
    check_cached_result,
    generate_csv,
    round_seeds,
    run_simulation,
    theoretical_rtp,
)
from plinko.config_hash import get_config_hash


class TestRunSimulation:
    def test_counts_add_up(self):
        stats = run_simulation(drop_column=6, rounds=50, seed_str="TEST")
        assert stats.rounds == 50
        assert sum(stats.bin_counts) == 50
        assert len(stats.bin_counts) == 13

    def test_reproducible(self):
        a = run_simulation(drop_column=3, rounds=30, seed_str="TEST")
        b = run_simulation(drop_column=3, rounds=30, seed_str="TEST")
        assert a.bin_counts == b.bin_counts
        assert a.total_won == b.total_won

    def test_seeds_are_deterministic_and_distinct(self):
        assert round_seeds("S", 1) == round_seeds("S", 1)
        assert round_seeds("S", 1) != round_seeds("S", 2)

    @pytest.mark.slow
    def test_higher_column_lowers_mean_bin(self):
        left = run_simulation(drop_column=0, rounds=300, seed_str="TEST")
        center = run_simulation(drop_column=6, rounds=300, seed_str="TEST")
        right = run_simulation(drop_column=12, rounds=300, seed_str="TEST")
        assert left.mean_bin > center.mean_bin > right.mean_bin
        assert left.mean_bin - right.mean_bin > 0.5


class TestTheoreticalRtp:
    def test_binomial_weighted_payout(self):
        # sum C(12,k) * payout[k] = 5708.4 over 2**12 paths
        assert theoretical_rtp() == pytest.approx(5708.4 / 4096 * 100)


class TestCsv:
    def test_generate_and_cache(self, tmp_path):
        out = tmp_path / "audit.csv"
        results = [run_simulation(drop_column=c, rounds=10, seed_str="TEST") for c in (0, 12)]
        generate_csv(rounds=10, seed_str="TEST", results=results, output_path=str(out))

        with open(out) as f:
            rows = list(csv.DictReader(f))
        assert [int(r["drop_column"]) for r in rows] == [0, 12]
        assert rows[0]["config_hash"] == get_config_hash()
        assert sum(int(rows[0][f"bin_{i}"]) for i in range(13)) == 10

        assert check_cached_result(str(out), get_config_hash(), 10, "TEST") is True
        assert check_cached_result(str(out), get_config_hash(), 11, "TEST") is False
        assert check_cached_result(str(out), "0" * 16, 10, "TEST") is False

    def test_missing_file_is_not_cached(self, tmp_path):
        assert check_cached_result(str(tmp_path / "nope.csv"), "x", 1, "S") is False
