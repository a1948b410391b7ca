#!/usr/bin/env python3
"""
Audit simulation for the Plinko engine.

Runs headless rounds for every drop column with deterministic seeds and
writes one CSV row per column: RTP, mean bin and bin histogram.

Usage:
    python -m scripts.audit_sim --rounds 100000 --seed AUDIT_2025 --out out/audit.csv
    python -m scripts.audit_sim --rounds 20000 --seed AUDIT_2025 --columns 0 6 12 --out out/edges.csv
"""
import argparse
import csv
import subprocess
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from math import comb
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from plinko.config_hash import get_config_hash
from plinko.logic.commitment import sha256
from plinko.logic.engine import BINS, PAYOUT_TABLE, ROWS, run_round


@dataclass
class ColumnStats:
    """Statistics accumulated for one drop column."""
    drop_column: int
    rounds: int = 0
    total_won: float = 0.0
    bin_sum: int = 0
    bin_counts: list[int] = field(default_factory=lambda: [0] * BINS)

    @property
    def rtp(self) -> float:
        return (self.total_won / self.rounds * 100) if self.rounds > 0 else 0.0

    @property
    def mean_bin(self) -> float:
        return (self.bin_sum / self.rounds) if self.rounds > 0 else 0.0


def get_git_commit() -> str:
    """Get current git commit hash (short)."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--short", "HEAD"],
            capture_output=True,
            text=True,
            cwd=Path(__file__).parent.parent.parent,
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


def round_seeds(seed_str: str, index: int) -> tuple[str, str, str]:
    """Deterministic (server_seed, client_seed, nonce) for simulated round ``index``."""
    server_seed = sha256(f"{seed_str}:server:{index}")
    client_seed = f"{seed_str}-client-{index}"
    return server_seed, client_seed, str(index)


def check_cached_result(output_path: str, config_hash: str, rounds: int, seed: str) -> bool:
    """
    Check if valid cached result exists.

    Returns True if cache is valid (same config_hash, rounds, seed).
    """
    path = Path(output_path)
    if not path.exists():
        return False

    try:
        with open(path, "r") as f:
            reader = csv.DictReader(f)
            row = next(reader, None)
            if row is None:
                return False

            if row.get("config_hash") != config_hash:
                return False
            if int(row.get("rounds", 0)) != rounds:
                return False
            if row.get("seed") != seed:
                return False

            return True
    except (OSError, csv.Error, ValueError):
        return False


def run_simulation(
    drop_column: int,
    rounds: int,
    seed_str: str,
    verbose: bool = False,
) -> ColumnStats:
    """
    Run headless rounds for one drop column at a stake of 1.

    The same seed string gives the same seed triples for every column,
    so columns are compared on identical entropy.
    """
    stats = ColumnStats(drop_column=drop_column)
    progress_interval = max(1, rounds // 100)

    for index in range(rounds):
        if verbose and index % progress_interval == 0:
            pct = (index / rounds) * 100
            print(f"\rColumn {drop_column}: {pct:.1f}%", end="", flush=True)

        server_seed, client_seed, nonce = round_seeds(seed_str, index)
        outcome = run_round(server_seed, client_seed, nonce, drop_column)

        stats.rounds += 1
        stats.total_won += outcome.payout_multiplier
        stats.bin_sum += outcome.bin_index
        stats.bin_counts[outcome.bin_index] += 1

    if verbose:
        print(f"\rColumn {drop_column}: 100.0%")

    return stats


def theoretical_rtp() -> float:
    """RTP (%) of an unbiased 12-row walk, for reference."""
    total = 2**ROWS
    return sum(comb(ROWS, k) / total * PAYOUT_TABLE[k] for k in range(BINS)) * 100


def generate_csv(
    rounds: int,
    seed_str: str,
    results: list[ColumnStats],
    output_path: str,
) -> None:
    """Generate audit CSV file, one row per drop column."""
    timestamp = get_timestamp_iso()
    git_commit = get_git_commit()
    config_hash = get_config_hash()

    rows = []
    for stats in results:
        row = {
            "timestamp": timestamp,
            "git_commit": git_commit,
            "config_hash": config_hash,
            "rounds": rounds,
            "seed": seed_str,
            "drop_column": stats.drop_column,
            "rtp": f"{stats.rtp:.4f}",
            "mean_bin": f"{stats.mean_bin:.4f}",
        }
        for bin_index, count in enumerate(stats.bin_counts):
            row[f"bin_{bin_index}"] = count
        rows.append(row)

    output_file = Path(output_path)
    output_file.parent.mkdir(parents=True, exist_ok=True)

    with open(output_file, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=rows[0].keys())
        writer.writeheader()
        writer.writerows(rows)

    print(f"CSV written to: {output_path}")


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Plinko engine audit simulation")
    parser.add_argument(
        "--rounds",
        type=int,
        required=True,
        help="Number of rounds per drop column",
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
        "--columns",
        type=int,
        nargs="+",
        default=list(range(BINS)),
        help="Drop columns to simulate (default: all)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Show progress",
    )
    parser.add_argument(
        "--skip-if-cached",
        action="store_true",
        help="Skip simulation if valid cached result exists",
    )

    args = parser.parse_args()

    if args.rounds <= 0:
        parser.error("--rounds must be positive")
    bad = [c for c in args.columns if not 0 <= c <= ROWS]
    if bad:
        parser.error(f"--columns must be in [0, {ROWS}], got {bad}")

    config_hash = get_config_hash()
    print(f"Running simulation: rounds={args.rounds}, seed={args.seed}, columns={args.columns}")
    print(f"Config hash: {config_hash}")

    if args.skip_if_cached:
        if check_cached_result(args.out, config_hash, args.rounds, args.seed):
            print(f"Using cached result: {args.out}")
            return 0

    results = [
        run_simulation(
            drop_column=column,
            rounds=args.rounds,
            seed_str=args.seed,
            verbose=args.verbose,
        )
        for column in args.columns
    ]

    generate_csv(
        rounds=args.rounds,
        seed_str=args.seed,
        results=results,
        output_path=args.out,
    )

    print(f"\nSummary (unbiased reference RTP: {theoretical_rtp():.4f}%):")
    for stats in results:
        print(
            f"  Column {stats.drop_column:2d}: RTP {stats.rtp:.4f}%  "
            f"mean bin {stats.mean_bin:.4f}"
        )

    return 0


if __name__ == "__main__":
    sys.exit(main())
