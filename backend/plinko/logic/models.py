"""Round outcome models for the fairness engine."""
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field


class PegMap(BaseModel):
    """
    Triangular peg board: row r holds r + 1 left-bias values.

    Immutable once generated; ``hash`` commits to its canonical form.
    """

    model_config = ConfigDict(frozen=True)

    rows: tuple[tuple[float, ...], ...]
    hash: str

    def bias(self, row: int, peg_index: int) -> float:
        return self.rows[row][peg_index]


class PathDecision(BaseModel):
    """One peg decision on the way down."""

    model_config = ConfigDict(frozen=True)

    row: int
    peg_index: int
    left_bias: float
    adjusted_bias: float
    random: float
    went_right: bool
    pos_after: int


class RoundOutcome(BaseModel):
    """Result of a full round computation."""

    peg_map: PegMap
    path: list[PathDecision] = Field(default_factory=list)
    bin_index: int
    payout_multiplier: float

    @property
    def peg_map_hash(self) -> str:
        return self.peg_map.hash


class VerificationResult(BaseModel):
    """Values recomputed from revealed seeds."""

    commit_hash: str
    combined_seed: str
    peg_map_hash: str
    bin_index: int
    path: list[PathDecision] = Field(default_factory=list)

    def matches(self, stored: Mapping[str, Any]) -> bool:
        """
        Compare against a stored round record.

        ``stored`` uses the round record keys (commitHex, combinedSeed,
        pegMapHash, binIndex). All four must be equal.
        """
        return (
            stored.get("commitHex") == self.commit_hash
            and stored.get("combinedSeed") == self.combined_seed
            and stored.get("pegMapHash") == self.peg_map_hash
            and stored.get("binIndex") == self.bin_index
        )
