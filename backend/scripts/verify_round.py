#!/usr/bin/env python3
"""
Recompute a revealed round from the command line.

Usage:
    python -m scripts.verify_round --server-seed <hex> --client-seed hello --nonce 42 --drop-column 6
    python -m scripts.verify_round ... --expect-commit <hex> --expect-bin 6

Prints the verification record as JSON. Exits 1 when an --expect-* value
does not match the recomputed one.
"""
import argparse
import json
import sys
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from plinko.logic.engine import verify_round
from plinko.logic.exceptions import EngineError
from plinko.protocol import path_to_protocol


def build_report(args: argparse.Namespace) -> tuple[dict, list[str]]:
    """Return (report, mismatches) for parsed arguments."""
    result = verify_round(args.server_seed, args.client_seed, args.nonce, args.drop_column)
    report = {
        "commitHex": result.commit_hash,
        "combinedSeed": result.combined_seed,
        "pegMapHash": result.peg_map_hash,
        "binIndex": result.bin_index,
    }
    if args.show_path:
        report["path"] = [step.model_dump() for step in path_to_protocol(result.path)]

    expected = {
        "commitHex": args.expect_commit,
        "combinedSeed": args.expect_combined,
        "pegMapHash": args.expect_peg_map_hash,
        "binIndex": args.expect_bin,
    }
    mismatches = [
        key for key, value in expected.items()
        if value is not None and report[key] != value
    ]
    return report, mismatches


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Verify a provably fair Plinko round")
    parser.add_argument("--server-seed", required=True, help="Revealed server seed")
    parser.add_argument("--client-seed", required=True, help="Client seed used for the round")
    parser.add_argument("--nonce", required=True, help="Round nonce")
    parser.add_argument("--drop-column", type=int, default=6, help="Drop column (0-12)")
    parser.add_argument("--show-path", action="store_true", help="Include the path decisions")
    parser.add_argument("--expect-commit", help="Published commit hash")
    parser.add_argument("--expect-combined", help="Stored combined seed")
    parser.add_argument("--expect-peg-map-hash", help="Stored peg map hash")
    parser.add_argument("--expect-bin", type=int, help="Stored bin index")

    args = parser.parse_args(argv)

    try:
        report, mismatches = build_report(args)
    except EngineError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    report["isValid"] = not mismatches
    print(json.dumps(report, indent=2))

    if mismatches:
        print(f"MISMATCH: {', '.join(mismatches)}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
