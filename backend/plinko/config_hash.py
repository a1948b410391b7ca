"""Engine config hash.

Shared by:
- audit_sim.py (CSV audit)
- telemetry (round_started event)

Any change to the engine constants changes this hash, which flags
outcomes that can no longer be verified against older rounds.
"""
import hashlib
import json

from plinko.logic import engine


def get_config_hash() -> str:
    """
    Generate hash of the engine constants.

    Returns 16-char hex hash of the config snapshot.
    """
    config_snapshot = {
        "rows": engine.ROWS,
        "bins": engine.BINS,
        "min_bias": engine.MIN_BIAS,
        "max_bias": engine.MAX_BIAS,
        "drop_column_influence": engine.DROP_COLUMN_INFLUENCE,
        "payout_table": {str(k): v for k, v in engine.PAYOUT_TABLE.items()},
    }
    canonical = json.dumps(config_snapshot, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode()).hexdigest()[:16]
