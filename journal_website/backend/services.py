import sqlite3
from datetime import timedelta
from typing import List, Optional, Protocol, Tuple

from loguru import logger

from .database import Database
from .domain import (
    Account,
    AuthError,
    ConflictError,
    Entry,
    EntryUpdate,
    NotFoundError,
    Session,
    StoreError,
    ValidationError,
    check_text,
)
from .stores import EntryStore
from .utils import hash_password, is_past, make_id, time_after, time_now, verify_password


class SessionResolver(Protocol):
    """What the journal needs from an account/session provider."""

    def resolve(self, token: Optional[str]) -> Optional[str]: ...

    def register(self, email: str, password: str, name: str) -> Account: ...

    def authenticate(self, email: str, password: str) -> Account: ...

    def start_session(self, account: Account) -> Session: ...

    def end_session(self, token: Optional[str]) -> bool: ...

    def get_account(self, account_id: str) -> Optional[Account]: ...


def bare_token(token: Optional[str]) -> Optional[str]:
    """Strip an optional ``Bearer`` prefix from a presented credential."""
    if token and token.startswith("Bearer "):
        token = token[7:]
    return token.strip() if token else None


class AuthService:
    """Handles user registration, login, and session validation with SQLite persistence."""

    def __init__(self, database: Database, session_ttl: timedelta = timedelta(days=7),
                 min_password_length: int = 6):
        self.database = database
        self.session_ttl = session_ttl
        self.min_password_length = min_password_length

    def register(self, email: str, password: str, name: str) -> Account:
        email = check_text("email", email).lower()
        name = check_text("name", name)
        if len(password) < self.min_password_length:
            raise ValidationError(f"Password must be at least {self.min_password_length} characters long")
        account = Account(make_id("usr"), email, name, time_now())
        try:
            with self.database.connection() as conn:
                conn.execute(
                    "INSERT INTO users (id, email, name, password_hash, created_time) VALUES (?, ?, ?, ?, ?)",
                    (account.id, email, name, hash_password(password), account.created_time),
                )
        except StoreError as e:
            if isinstance(e.__cause__, sqlite3.IntegrityError):
                raise ConflictError("Email already exists") from None
            raise
        logger.info("Registered account {}", account.id)
        return account

    def authenticate(self, email: str, password: str) -> Account:
        with self.database.connection() as conn:
            row = conn.execute(
                "SELECT id, email, name, created_time, password_hash FROM users WHERE email=?",
                ((email or "").strip().lower(),),
            ).fetchone()
        if row is None or not verify_password(password, row[4]):
            logger.warning("Failed login attempt")
            raise AuthError("Invalid email or password")
        return Account(*row[:4])

    def start_session(self, account: Account) -> Session:
        session = Session(make_id("sess"), account.id, time_now(), time_after(self.session_ttl))
        with self.database.connection() as conn:
            conn.execute(
                "INSERT INTO sessions (token, user_id, created_time, expires_time) VALUES (?, ?, ?, ?)",
                (session.token, session.account_id, session.created_time, session.expires_time),
            )
        return session

    def resolve(self, token: Optional[str]) -> Optional[str]:
        """Return the account id behind a session token, or None when anonymous."""
        token = bare_token(token)
        if not token:
            return None
        with self.database.connection() as conn:
            row = conn.execute("SELECT user_id, expires_time FROM sessions WHERE token=?", (token,)).fetchone()
            if row is None:
                return None
            if is_past(row[1]):
                conn.execute("DELETE FROM sessions WHERE token=?", (token,))
                logger.debug("Dropped expired session for {}", row[0])
                return None
        return row[0]

    def end_session(self, token: Optional[str]) -> bool:
        token = bare_token(token)
        if not token:
            return False
        with self.database.connection() as conn:
            cursor = conn.execute("DELETE FROM sessions WHERE token=?", (token,))
            return cursor.rowcount > 0

    def purge_expired(self) -> int:
        with self.database.connection() as conn:
            cursor = conn.execute("DELETE FROM sessions WHERE expires_time <= ?", (time_now(),))
            return cursor.rowcount

    def get_account(self, account_id: str) -> Optional[Account]:
        with self.database.connection() as conn:
            row = conn.execute(
                "SELECT id, email, name, created_time FROM users WHERE id=?", (account_id,)
            ).fetchone()
        return Account(*row) if row else None


class Journal:
    """
    The request handlers: authorize, validate, then make one store call.

    Every entry operation takes the credential the caller presented and
    resolves it first; anonymous callers get AuthError.
    """

    def __init__(self, store: EntryStore, auth: SessionResolver):
        self.store = store
        self.auth = auth

    def owner(self, token: Optional[str]) -> str:
        owner_id = self.auth.resolve(token)
        if owner_id is None:
            raise AuthError("Unauthorized")
        return owner_id

    def register(self, email: str, password: str, name: str) -> Account:
        return self.auth.register(email, password, name)

    def login(self, email: str, password: str) -> Tuple[Account, Session]:
        account = self.auth.authenticate(email, password)
        session = self.auth.start_session(account)
        logger.info("Account {} logged in", account.id)
        return account, session

    def logout(self, token: Optional[str]) -> bool:
        return self.auth.end_session(token)

    def current_account(self, token: Optional[str]) -> Account:
        account = self.auth.get_account(self.owner(token))
        if account is None:
            raise AuthError("Unauthorized")
        return account

    def list_entries(self, token: Optional[str]) -> List[Entry]:
        return self.store.list_by_owner(self.owner(token))

    def get_entry(self, token: Optional[str], entry_id: int) -> Entry:
        entry = self.store.get(entry_id, self.owner(token))
        if entry is None:
            raise NotFoundError(f"Entry {entry_id} not found")
        return entry

    def add_entry(self, token: Optional[str], title: str, content: str) -> Entry:
        owner_id = self.owner(token)
        entry = self.store.create(title, content, owner_id)
        logger.info("Account {} added entry {}", owner_id, entry.id)
        return entry

    def update_entry(self, token: Optional[str], entry_id: int, update: EntryUpdate) -> Entry:
        owner_id = self.owner(token)
        entry = self.store.update_by_id_and_owner(entry_id, owner_id, update)
        logger.info("Account {} updated entry {}", owner_id, entry_id)
        return entry

    def delete_entry(self, token: Optional[str], entry_id: int) -> bool:
        owner_id = self.owner(token)
        success = self.store.delete_by_id_and_owner(entry_id, owner_id)
        logger.info("Account {} deleted entry {}", owner_id, entry_id)
        return success
