"""
Hashing and identifier generation utilities.

Daily log identifiers are derived from the day key so that rebuilding the
index from the same events always yields the same records.
"""

import hashlib
from datetime import date

DEFAULT_ALGORITHM = "sha256"
LOG_ID_LENGTH = 32


def generate_log_id(day: date, algorithm: str = DEFAULT_ALGORITHM) -> str:
    """
    Generate deterministic daily log ID for a calendar day.

    Args:
        day: Local calendar day the log summarizes.
        algorithm: Hash algorithm to use.

    Returns:
        Deterministic log ID (truncated hex string).
    """
    hash_func = hashlib.new(algorithm)
    hash_func.update(f"daily-log|{day.isoformat()}".encode("utf-8"))

    return hash_func.hexdigest()[:LOG_ID_LENGTH]

