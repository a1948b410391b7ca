"""Round service protocol models."""
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, StrictInt

from plinko.config import settings
from plinko.logic.engine import ROWS
from plinko.logic.models import PathDecision, VerificationResult


class RoundStatus(str, Enum):
    """Round lifecycle status."""

    CREATED = "CREATED"
    STARTED = "STARTED"
    REVEALED = "REVEALED"


SUMMARY_FIELDS = (
    "id",
    "createdAt",
    "status",
    "nonce",
    "commitHex",
    "clientSeed",
    "pegMapHash",
    "dropColumn",
    "binIndex",
    "payoutMultiplier",
    "betCents",
    "serverSeed",
)


# === Request Models ===


class StartRoundRequest(BaseModel):
    """POST /rounds/{id}/start request body."""

    clientSeed: str = Field(..., description="Player-chosen seed, non-empty")
    betCents: int = Field(..., description="Stake in cents, positive")
    dropColumn: StrictInt = Field(..., description="Column in [0, 12]")


# === Shared Models ===


class PathStep(BaseModel):
    """One peg decision as published to players."""

    row: int
    pegIndex: int
    leftBias: float
    adjustedBias: float
    random: float
    wentRight: bool
    posAfter: int

    @classmethod
    def from_decision(cls, decision: PathDecision) -> "PathStep":
        return cls(
            row=decision.row,
            pegIndex=decision.peg_index,
            leftBias=decision.left_bias,
            adjustedBias=decision.adjusted_bias,
            random=decision.random,
            wentRight=decision.went_right,
            posAfter=decision.pos_after,
        )


def path_to_protocol(path: list[PathDecision]) -> list[PathStep]:
    return [PathStep.from_decision(d) for d in path]


class RoundRecord(BaseModel):
    """Stored round. serverSeed stays private until the round is revealed."""

    id: str
    createdAt: datetime
    status: RoundStatus = RoundStatus.CREATED
    nonce: str
    commitHex: str
    serverSeed: str | None = None
    clientSeed: str | None = None
    combinedSeed: str | None = None
    pegMapHash: str | None = None
    rows: int = ROWS
    dropColumn: int | None = None
    binIndex: int | None = None
    payoutMultiplier: float | None = None
    betCents: int | None = None
    path: list[PathStep] | None = None
    revealedAt: datetime | None = None

    def public_view(self) -> dict:
        """Dump for clients, hiding the server seed before reveal."""
        data = self.model_dump(mode="json")
        if self.status != RoundStatus.REVEALED:
            data["serverSeed"] = None
        return data

    def summary_view(self) -> dict:
        """Listing entry: public view without path, rows or combined seed."""
        data = self.public_view()
        return {field: data[field] for field in SUMMARY_FIELDS}


# === Response Models ===


class CommitResponse(BaseModel):
    """POST /rounds/commit response: public commitment only."""

    protocolVersion: str = settings.protocol_version
    roundId: str
    commitHex: str
    nonce: str


class StartRoundResponse(BaseModel):
    """POST /rounds/{id}/start response."""

    protocolVersion: str = settings.protocol_version
    roundId: str
    pegMapHash: str
    rows: int = ROWS
    binIndex: int
    payoutMultiplier: float
    path: list[PathStep] = Field(default_factory=list)


class RevealResponse(BaseModel):
    """POST /rounds/{id}/reveal response."""

    protocolVersion: str = settings.protocol_version
    roundId: str
    serverSeed: str
    message: str | None = None


class RoundListResponse(BaseModel):
    """GET /rounds response: recent revealed rounds, newest first."""

    protocolVersion: str = settings.protocol_version
    rounds: list[dict] = Field(default_factory=list)


class StoredRoundSummary(BaseModel):
    """Stored values the verifier compared against."""

    id: str
    binIndex: int | None
    pegMapHash: str | None
    commitHex: str


class VerifyResponse(BaseModel):
    """GET /verify response."""

    protocolVersion: str = settings.protocol_version
    commitHex: str
    combinedSeed: str
    pegMapHash: str
    binIndex: int
    path: list[PathStep] = Field(default_factory=list)
    isValid: bool = True
    storedRound: StoredRoundSummary | None = None

    @classmethod
    def from_result(
        cls,
        result: VerificationResult,
        is_valid: bool,
        stored: RoundRecord | None = None,
    ) -> "VerifyResponse":
        summary = None
        if stored is not None:
            summary = StoredRoundSummary(
                id=stored.id,
                binIndex=stored.binIndex,
                pegMapHash=stored.pegMapHash,
                commitHex=stored.commitHex,
            )
        return cls(
            commitHex=result.commit_hash,
            combinedSeed=result.combined_seed,
            pegMapHash=result.peg_map_hash,
            binIndex=result.bin_index,
            path=path_to_protocol(result.path),
            isValid=is_valid,
            storedRound=summary,
        )
