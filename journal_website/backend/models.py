from typing import Optional

from pydantic import BaseModel, EmailStr


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str
    name: str


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class EntryCreate(BaseModel):
    title: str
    content: str


class EntryPatch(BaseModel):
    """Fields left out (or null) are not changed."""

    title: Optional[str] = None
    content: Optional[str] = None


class EmptyInput(BaseModel):
    pass


class EntryIdInput(BaseModel):
    id: int


class EntryUpdateInput(EntryPatch):
    id: int


class EntryOut(BaseModel):
    id: int
    owner_id: Optional[str] = None
    title: str
    content: str
    created_time: str
    updated_time: str


class AccountOut(BaseModel):
    id: str
    email: str
    name: str
    created_time: str


class SessionOut(BaseModel):
    account: AccountOut
    token: str
    expires_time: str


class SuccessResponse(BaseModel):
    success: bool


class ErrorResponse(BaseModel):
    detail: str


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    store_backend: str


def describe_errors(errors) -> str:
    """Flatten pydantic error dicts into one human-readable line."""
    parts = []
    for error in errors:
        location = ".".join(str(part) for part in error.get("loc", ()) if part not in ("body", "path", "query"))
        parts.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "; ".join(parts) or "Invalid request"


class MessageResponse(BaseModel):
    message: str


ERROR_RESPONSES = {
    status: {"model": ErrorResponse, "description": description}
    for status, description in (
        (400, "Invalid input"),
        (401, "Missing, invalid or expired session"),
        (404, "No such entry for this account"),
        (409, "Email already registered"),
        (500, "Storage failure"),
    )
}
