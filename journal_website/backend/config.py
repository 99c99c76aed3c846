"""
Runtime settings.

Defaults live on the dataclass; any field can be overridden with an
environment variable named ``JOURNAL_<FIELD>``, e.g.
``JOURNAL_STORE_BACKEND=json`` or ``JOURNAL_SESSION_TTL_HOURS=12``.
"""

import os
from dataclasses import dataclass, field, fields
from datetime import timedelta
from typing import List, Mapping, Optional

ENV_PREFIX = "JOURNAL_"
STORE_BACKENDS = ("sqlite", "json", "memory")


@dataclass
class Settings:
    """
    Attributes:
        database_path: SQLite file holding accounts, sessions and (for the
            sqlite backend) entries.
        store_backend: Where entries live: "sqlite", "json" or "memory".
        json_path: Entry file used by the json backend.
        session_ttl_hours: Lifetime of a login session.
        min_password_length: Shortest password accepted at registration.
        cookie_name: Name of the session cookie set on login.
        cookie_secure: Mark the session cookie Secure (HTTPS only).
        cors_origins: Origins allowed to call the API with credentials.
        log_level: loguru level name.
    """

    database_path: str = "journal.db"
    store_backend: str = "sqlite"
    json_path: str = "entries.json"
    session_ttl_hours: int = 168
    min_password_length: int = 6
    cookie_name: str = "journal_session"
    cookie_secure: bool = False
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    def __post_init__(self):
        if self.store_backend not in STORE_BACKENDS:
            raise ValueError(f"store_backend must be one of {', '.join(STORE_BACKENDS)}, got {self.store_backend!r}")
        if self.session_ttl_hours <= 0:
            raise ValueError("session_ttl_hours must be positive")
        if self.min_password_length < 1:
            raise ValueError("min_password_length must be at least 1")

    @property
    def session_ttl(self) -> timedelta:
        return timedelta(hours=self.session_ttl_hours)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> "Settings":
        """Build settings from ``JOURNAL_*`` variables; keyword overrides win."""
        environ = os.environ if environ is None else environ
        values = {}
        for f in fields(cls):
            raw = environ.get(ENV_PREFIX + f.name.upper())
            if raw is not None:
                values[f.name] = _parse(f.name, f.type, raw)
        values.update(overrides)
        return cls(**values)


def _parse(name: str, type_, raw: str):
    if type_ in (bool, "bool"):
        lowered = raw.strip().lower()
        if lowered in ("1", "true", "yes", "on"):
            return True
        if lowered in ("0", "false", "no", "off"):
            return False
        raise ValueError(f"{ENV_PREFIX}{name.upper()} must be a boolean, got {raw!r}")
    if type_ in (int, "int"):
        try:
            return int(raw)
        except ValueError:
            raise ValueError(f"{ENV_PREFIX}{name.upper()} must be an integer, got {raw!r}") from None
    if name == "cors_origins":
        return [origin.strip() for origin in raw.split(",") if origin.strip()]
    return raw
