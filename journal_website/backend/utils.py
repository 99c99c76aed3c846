import hashlib
import hmac
import secrets
import uuid
from datetime import datetime, timedelta, UTC

PBKDF2_ITERATIONS = 240_000


def make_id(prefix: str) -> str:
    """Generate a unique ID with a given prefix."""
    return f"{prefix}_{uuid.uuid4()}"


def time_now() -> str:
    """Return the current time in ISO format (UTC, no microseconds)."""
    return datetime.now(UTC).replace(microsecond=0).isoformat()


def time_after(delta: timedelta) -> str:
    """Return the ISO timestamp ``delta`` from now, same format as time_now()."""
    return (datetime.now(UTC) + delta).replace(microsecond=0).isoformat()


def is_past(timestamp: str) -> bool:
    return datetime.fromisoformat(timestamp) <= datetime.now(UTC)


def hash_password(password: str, iterations: int = PBKDF2_ITERATIONS) -> str:
    """
    Hash a password with a fresh random salt.

    The result is self-describing: ``pbkdf2_sha256$<iterations>$<salt>$<hash>``,
    so the iteration count can be raised later without breaking stored hashes.
    """
    salt = secrets.token_bytes(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt, iterations)
    return f"pbkdf2_sha256${iterations}${salt.hex()}${digest.hex()}"


def verify_password(password: str, encoded: str) -> bool:
    """Check a password against a value produced by hash_password()."""
    try:
        algorithm, iterations, salt, expected = encoded.split("$")
        if algorithm != "pbkdf2_sha256":
            return False
        digest = hashlib.pbkdf2_hmac("sha256", password.encode(), bytes.fromhex(salt), int(iterations))
    except ValueError:
        return False
    return hmac.compare_digest(digest.hex(), expected)
