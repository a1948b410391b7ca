"""Request validators for the round service."""
from plinko.config import settings
from plinko.errors import ErrorCode, GameError
from plinko.logic.engine import ROWS
from plinko.protocol import StartRoundRequest


def validate_client_seed(client_seed: str | None) -> None:
    """Raises INVALID_REQUEST if clientSeed is missing or empty."""
    if not client_seed:
        raise GameError(ErrorCode.INVALID_REQUEST, "clientSeed is required")


def validate_drop_column(drop_column: int | None) -> None:
    """Raises INVALID_REQUEST if dropColumn is outside [0, ROWS]."""
    if drop_column is None or not 0 <= drop_column <= ROWS:
        raise GameError(
            ErrorCode.INVALID_REQUEST,
            f"dropColumn must be between 0 and {ROWS}",
        )


def validate_bet(bet_cents: int) -> None:
    """Raises INVALID_REQUEST unless betCents is positive."""
    if bet_cents <= 0:
        raise GameError(
            ErrorCode.INVALID_REQUEST,
            "betCents must be a positive number",
        )


def validate_start_request(request: StartRoundRequest) -> None:
    """Run all validations on a start request."""
    validate_client_seed(request.clientSeed)
    validate_drop_column(request.dropColumn)
    validate_bet(request.betCents)


def validate_verify_params(
    server_seed: str | None,
    client_seed: str | None,
    nonce: str | None,
    drop_column: int | None,
) -> None:
    """Validate GET /verify query parameters."""
    if not server_seed or not client_seed or not nonce:
        raise GameError(
            ErrorCode.INVALID_REQUEST,
            "serverSeed, clientSeed, and nonce are required",
        )
    validate_drop_column(drop_column)


def clamp_list_limit(limit: int | None) -> int:
    """Default and cap the GET /rounds limit."""
    if limit is None or limit <= 0:
        return settings.recent_rounds_default
    return min(limit, settings.recent_rounds_max)
