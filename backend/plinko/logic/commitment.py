"""Hashing and commit-reveal primitives for provably fair rounds.

A round is fixed by three text values: the server seed (secret until
reveal), the client seed (chosen by the player) and the nonce. Before the
round the server publishes ``commit_hash(server_seed, nonce)``; after the
reveal anyone can recompute it and every derived value below.
"""
import hashlib
import secrets
from typing import Sequence


def sha256(data: str | bytes) -> str:
    """Return lowercase hex SHA-256 digest (64 chars) of ``data``."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.sha256(data).hexdigest()


def random_token(byte_length: int = 32) -> str:
    """Return ``byte_length`` cryptographically secure random bytes as hex."""
    return secrets.token_hex(byte_length)


def commit_hash(server_seed: str, nonce: str) -> str:
    """SHA256(serverSeed:nonce), published before the round starts."""
    return sha256(f"{server_seed}:{nonce}")


def combined_seed(server_seed: str, client_seed: str, nonce: str) -> str:
    """SHA256(serverSeed:clientSeed:nonce), the sole entropy of a round."""
    return sha256(f"{server_seed}:{client_seed}:{nonce}")


def format_number(value: float) -> str:
    """Shortest round-trip decimal text; integral values have no fraction."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def serialize_peg_map(rows: Sequence[Sequence[float]]) -> str:
    """
    Canonical text form of a peg map.

    Compact nested arrays without whitespace, e.g.
    ``[[0.422123],[0.552503,0.408786]]``. The peg map hash commits to
    exactly these bytes, so the number formatting must not change.
    """
    inner = ",".join(
        "[" + ",".join(format_number(bias) for bias in row) + "]" for row in rows
    )
    return f"[{inner}]"


def peg_map_hash(rows: Sequence[Sequence[float]]) -> str:
    """Hash of the canonical peg map serialization."""
    return sha256(serialize_peg_map(rows))
