from typing import Any, Dict, Optional


class Entry:
    """Represents a single journal entry owned by one account."""

    def __init__(self, id: int, owner_id: Optional[str], title: str, content: str,
                 created_time: str, updated_time: str):
        self.id = id
        self.owner_id = owner_id
        self.title = title
        self.content = content
        self.created_time = created_time
        self.updated_time = updated_time

    def to_dict(self) -> Dict[str, Any]:
        """Convert entry to dictionary representation."""
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "title": self.title,
            "content": self.content,
            "created_time": self.created_time,
            "updated_time": self.updated_time,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Entry":
        return cls(
            int(data["id"]),
            data.get("owner_id"),
            data["title"],
            data["content"],
            data.get("created_time", ""),
            data.get("updated_time", data.get("created_time", "")),
        )

    def __repr__(self) -> str:
        return f"Entry(id={self.id!r}, owner_id={self.owner_id!r}, title={self.title!r})"


class Account:
    """A registered account. Credential material never leaves the auth service."""

    def __init__(self, id: str, email: str, name: str, created_time: str):
        self.id = id
        self.email = email
        self.name = name
        self.created_time = created_time

    def to_dict(self) -> Dict[str, str]:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "created_time": self.created_time,
        }


class Session:
    def __init__(self, token: str, account_id: str, created_time: str, expires_time: str):
        self.token = token
        self.account_id = account_id
        self.created_time = created_time
        self.expires_time = expires_time


class EntryUpdate:
    """
    Partial update of an entry.

    A field left as None is not touched. Supplied fields must be non-blank;
    they are applied together in a single store write.
    """

    def __init__(self, title: Optional[str] = None, content: Optional[str] = None):
        self.title = title
        self.content = content

    def is_empty(self) -> bool:
        return self.title is None and self.content is None

    def validate(self) -> "EntryUpdate":
        """Return a copy with supplied fields stripped, or raise ValidationError."""
        title = check_text("title", self.title) if self.title is not None else None
        content = check_text("content", self.content) if self.content is not None else None
        return EntryUpdate(title, content)

    def fields(self) -> Dict[str, str]:
        """The supplied fields only, keyed by column name."""
        return {k: v for k, v in (("title", self.title), ("content", self.content)) if v is not None}


class JournalError(Exception):
    """Base class for errors the API reports back to the caller."""

    status_code = 500


class ValidationError(JournalError):
    """Missing or malformed input."""

    status_code = 400


class AuthError(JournalError):
    """Missing, invalid or expired credentials."""

    status_code = 401


class NotFoundError(JournalError):
    status_code = 404


class ConflictError(JournalError):
    status_code = 409


class StoreError(JournalError):
    """The persistence layer failed. The message is never shown to clients."""

    status_code = 500


def check_text(name: str, value: Optional[str]) -> str:
    """Strip ``value`` and reject it when missing or blank."""
    if value is None or not value.strip():
        raise ValidationError(f"{name.capitalize()} cannot be empty")
    return value.strip()
