"""Provably fair Plinko round service."""
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI

from plinko.config import settings
from plinko.config_hash import get_config_hash
from plinko.errors import ErrorCode, GameError
from plinko.logic.commitment import combined_seed, commit_hash, random_token
from plinko.logic.engine import run_round, verify_round
from plinko.middleware import ErrorHandlerMiddleware
from plinko.protocol import (
    CommitResponse,
    RevealResponse,
    RoundListResponse,
    RoundRecord,
    RoundStatus,
    StartRoundRequest,
    StartRoundResponse,
    VerifyResponse,
    path_to_protocol,
)
from plinko.redis_service import redis_service
from plinko.telemetry import (
    telemetry_service,
    RoundCommittedEvent,
    RoundRevealedEvent,
    RoundStartedEvent,
    RoundVerifiedEvent,
)
from plinko.validators import (
    clamp_list_limit,
    validate_start_request,
    validate_verify_params,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage Redis connection lifecycle."""
    await redis_service.connect()
    yield
    await redis_service.close()


app = FastAPI(
    title="Provably Fair Plinko",
    version="0.1.0",
    description="Commit-reveal Plinko rounds with public verification",
    lifespan=lifespan,
)

app.add_middleware(ErrorHandlerMiddleware)


async def _load_round(round_id: str) -> RoundRecord:
    record = await redis_service.get_round(round_id)
    if record is None:
        raise GameError(ErrorCode.ROUND_NOT_FOUND, "Round not found")
    return record


@app.get("/health")
async def health() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


@app.post("/rounds/commit")
async def commit_round() -> dict:
    """
    POST /rounds/commit.

    Mints a server seed and nonce, stores the round as CREATED and
    returns only the public commitment.
    """
    server_seed = random_token(settings.server_seed_bytes)
    nonce = str(uuid.uuid4())
    record = RoundRecord(
        id=str(uuid.uuid4()),
        createdAt=datetime.now(timezone.utc),
        status=RoundStatus.CREATED,
        nonce=nonce,
        commitHex=commit_hash(server_seed, nonce),
        serverSeed=server_seed,
    )
    await redis_service.save_round(record)

    telemetry_service.emit_round_committed(
        RoundCommittedEvent(round_id=record.id, commit_hex=record.commitHex)
    )

    return CommitResponse(
        roundId=record.id, commitHex=record.commitHex, nonce=record.nonce
    ).model_dump()


@app.post("/rounds/{round_id}/start")
async def start_round(round_id: str, body: StartRoundRequest) -> dict:
    """
    POST /rounds/{id}/start.

    Implements:
    - Request validation
    - Per-round locking (ROUND_IN_PROGRESS on concurrent start)
    - Engine execution against the committed server seed
    - Persisting every derived value for later verification
    """
    # 1) Validate request
    validate_start_request(body)

    # 2) Unknown round is a 404 before any locking
    await _load_round(round_id)

    # 3) Acquire round lock (raises ROUND_IN_PROGRESS if locked)
    async with redis_service.round_lock(round_id) as lock_metrics:
        # 4) Re-read inside lock: another start may have won the race
        record = await _load_round(round_id)
        if record.status != RoundStatus.CREATED:
            raise GameError(ErrorCode.ROUND_ALREADY_STARTED, "Round has already started")
        if not record.serverSeed:
            raise GameError(ErrorCode.INVALID_ROUND_STATE, "Invalid round state")

        # 5) Execute engine
        outcome = run_round(
            record.serverSeed, body.clientSeed, record.nonce, body.dropColumn
        )
        path = path_to_protocol(outcome.path)

        # 6) Persist
        record = record.model_copy(
            update={
                "status": RoundStatus.STARTED,
                "clientSeed": body.clientSeed,
                "combinedSeed": combined_seed(
                    record.serverSeed, body.clientSeed, record.nonce
                ),
                "pegMapHash": outcome.peg_map_hash,
                "dropColumn": body.dropColumn,
                "binIndex": outcome.bin_index,
                "payoutMultiplier": outcome.payout_multiplier,
                "betCents": body.betCents,
                "path": path,
            }
        )
        await redis_service.save_round(record)

    # 7) Telemetry
    telemetry_service.emit_round_started(
        RoundStartedEvent(
            round_id=record.id,
            drop_column=body.dropColumn,
            bin_index=outcome.bin_index,
            payout_multiplier=outcome.payout_multiplier,
            bet_cents=body.betCents,
            peg_map_hash=outcome.peg_map_hash,
            config_hash=get_config_hash(),
            lock_acquire_ms=lock_metrics.acquire_ms,
        )
    )

    return StartRoundResponse(
        roundId=record.id,
        pegMapHash=outcome.peg_map_hash,
        binIndex=outcome.bin_index,
        payoutMultiplier=outcome.payout_multiplier,
        path=path,
    ).model_dump()


@app.post("/rounds/{round_id}/reveal")
async def reveal_round(round_id: str) -> dict:
    """POST /rounds/{id}/reveal: disclose the server seed of a started round."""
    record = await _load_round(round_id)

    if record.status == RoundStatus.CREATED:
        raise GameError(ErrorCode.ROUND_NOT_STARTED, "Round has not started yet")

    already_revealed = record.status == RoundStatus.REVEALED
    if not already_revealed:
        record = record.model_copy(
            update={
                "status": RoundStatus.REVEALED,
                "revealedAt": datetime.now(timezone.utc),
            }
        )
        await redis_service.save_round(record)

    telemetry_service.emit_round_revealed(
        RoundRevealedEvent(round_id=record.id, already_revealed=already_revealed)
    )

    return RevealResponse(
        roundId=record.id,
        serverSeed=record.serverSeed,
        message="Round already revealed" if already_revealed else None,
    ).model_dump()


@app.get("/rounds/{round_id}")
async def get_round(round_id: str) -> dict:
    """GET /rounds/{id}: serverSeed is null until revealed."""
    record = await _load_round(round_id)
    return record.public_view()


@app.get("/rounds")
async def list_rounds(limit: int | None = None) -> dict:
    """GET /rounds: recent revealed rounds, newest first."""
    records = await redis_service.list_revealed(clamp_list_limit(limit))
    return RoundListResponse(rounds=[r.summary_view() for r in records]).model_dump()


@app.get("/verify")
async def verify(
    serverSeed: str | None = None,
    clientSeed: str | None = None,
    nonce: str | None = None,
    dropColumn: int = settings.default_verify_drop_column,
    roundId: str | None = None,
) -> dict:
    """
    GET /verify.

    Recomputes a round from revealed seeds. When roundId names a stored
    round, isValid compares commit hash, combined seed, peg map hash and
    bin index against it.
    """
    validate_verify_params(serverSeed, clientSeed, nonce, dropColumn)

    result = verify_round(serverSeed, clientSeed, nonce, dropColumn)

    stored = None
    is_valid = True
    if roundId:
        stored = await redis_service.get_round(roundId)
        if stored is not None:
            is_valid = result.matches(stored.model_dump())

    telemetry_service.emit_round_verified(
        RoundVerifiedEvent(round_id=roundId, bin_index=result.bin_index, is_valid=is_valid)
    )

    return VerifyResponse.from_result(result, is_valid, stored).model_dump()
