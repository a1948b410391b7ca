"""Plinko fairness engine: peg map generation, drop simulation, verification.

Every round consumes a single xorshift32 stream seeded from the combined
seed: 78 draws build the peg map, then 12 more drive the drop. The order
is part of the published fairness proof and must never change.
"""
import logging

from plinko.logic.commitment import combined_seed, commit_hash, peg_map_hash
from plinko.logic.exceptions import DropColumnError
from plinko.logic.models import PathDecision, PegMap, RoundOutcome, VerificationResult
from plinko.logic.rng import RNGBase, Xorshift32, round_to, seed_from_hex


logger = logging.getLogger(__name__)


# === BOARD ===
ROWS = 12
BINS = ROWS + 1
PEG_COUNT = ROWS * (ROWS + 1) // 2

# Peg bias band: 0.5 +/- BIAS_SPREAD / 2
NEUTRAL_BIAS = 0.5
BIAS_SPREAD = 0.2
MIN_BIAS = 0.4
MAX_BIAS = 0.6
BIAS_DECIMALS = 6

# === DROP ===
DROP_COLUMN_INFLUENCE = 0.01
CENTER_COLUMN = ROWS // 2
DRAW_DECIMALS = 10
DRAWS_PER_ROUND = PEG_COUNT + ROWS

# Symmetric payout table (edges pay more)
PAYOUT_TABLE: dict[int, float] = {
    0: 16,
    1: 9,
    2: 4,
    3: 2,
    4: 1.4,
    5: 1.1,
    6: 1,
    7: 1.1,
    8: 1.4,
    9: 2,
    10: 4,
    11: 9,
    12: 16,
}


def validate_drop_column(drop_column: int) -> int:
    """Raise DropColumnError unless drop_column is an int in [0, ROWS]."""
    if isinstance(drop_column, bool) or not isinstance(drop_column, int):
        raise DropColumnError(f"Drop column must be an integer, got {drop_column!r}")
    if not 0 <= drop_column <= ROWS:
        raise DropColumnError(
            f"Drop column {drop_column} out of range [0, {ROWS}]"
        )
    return drop_column


def column_adjustment(drop_column: int) -> float:
    """Bias shift applied at every peg for the chosen drop column."""
    return (drop_column - CENTER_COLUMN) * DROP_COLUMN_INFLUENCE


def generate_peg_map(rng: RNGBase) -> PegMap:
    """
    Build the peg map from the next PEG_COUNT draws of ``rng``.

    leftBias = round(0.5 + (draw - 0.5) * 0.2, 6), so every value lies in
    [MIN_BIAS, MAX_BIAS].
    """
    rows = []
    for row in range(ROWS):
        pegs = []
        for _ in range(row + 1):
            raw_bias = NEUTRAL_BIAS + (rng.random() - NEUTRAL_BIAS) * BIAS_SPREAD
            pegs.append(round_to(raw_bias, BIAS_DECIMALS))
        rows.append(tuple(pegs))

    rows = tuple(rows)
    return PegMap(rows=rows, hash=peg_map_hash(rows))


def simulate_drop(
    peg_map: PegMap, drop_column: int, rng: RNGBase
) -> tuple[list[PathDecision], int]:
    """
    Walk the ball through ``peg_map`` using the next ROWS draws of ``rng``.

    ``pos`` counts right moves so far; the peg hit on row r is
    min(pos, r). The ball goes right when the draw is >= the adjusted
    left bias. Returns (path, bin_index).
    """
    validate_drop_column(drop_column)
    adjustment = column_adjustment(drop_column)

    path: list[PathDecision] = []
    pos = 0
    for row in range(ROWS):
        peg_index = min(pos, row)
        left_bias = peg_map.bias(row, peg_index)
        adjusted_bias = max(0.0, min(1.0, left_bias + adjustment))

        draw = round_to(rng.random(), DRAW_DECIMALS)
        went_right = draw >= adjusted_bias
        if went_right:
            pos += 1

        path.append(
            PathDecision(
                row=row,
                peg_index=peg_index,
                left_bias=left_bias,
                adjusted_bias=round_to(adjusted_bias, BIAS_DECIMALS),
                random=draw,
                went_right=went_right,
                pos_after=pos,
            )
        )

    return path, pos


def run_round(
    server_seed: str, client_seed: str, nonce: str, drop_column: int
) -> RoundOutcome:
    """
    Compute a complete round.

    Pure: the same four inputs always give the same peg map, path and bin.
    The drop column is checked before any draw so a bad input never
    yields a partial result.
    """
    validate_drop_column(drop_column)

    seed_hex = combined_seed(server_seed, client_seed, nonce)
    rng = Xorshift32(seed_from_hex(seed_hex))

    peg_map = generate_peg_map(rng)
    path, bin_index = simulate_drop(peg_map, drop_column, rng)

    logger.debug(
        "Round computed: drop_column=%d bin=%d draws=%d peg_map_hash=%s",
        drop_column,
        bin_index,
        rng.draws,
        peg_map.hash,
    )

    return RoundOutcome(
        peg_map=peg_map,
        path=path,
        bin_index=bin_index,
        payout_multiplier=PAYOUT_TABLE[bin_index],
    )


def verify_round(
    server_seed: str, client_seed: str, nonce: str, drop_column: int
) -> VerificationResult:
    """
    Recompute every public value of a revealed round.

    Comparing against a stored round is left to the caller
    (see VerificationResult.matches).
    """
    commit = commit_hash(server_seed, nonce)
    seed_hex = combined_seed(server_seed, client_seed, nonce)
    outcome = run_round(server_seed, client_seed, nonce, drop_column)
    return VerificationResult(
        commit_hash=commit,
        combined_seed=seed_hex,
        peg_map_hash=outcome.peg_map_hash,
        bin_index=outcome.bin_index,
        path=outcome.path,
    )
