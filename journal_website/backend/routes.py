from typing import List, Optional

from fastapi import APIRouter, Depends, Header, Request, Response

from .domain import EntryUpdate
from .models import (
    AccountOut,
    EntryCreate,
    EntryOut,
    ERROR_RESPONSES,
    EntryPatch,
    LoginRequest,
    RegisterRequest,
    SessionOut,
    SuccessResponse,
)
from .services import Journal


def get_journal(request: Request) -> Journal:
    return request.app.state.journal


def get_token(request: Request, authorization: Optional[str] = Header(None)) -> Optional[str]:
    """The presented credential: a bearer header, else the session cookie."""
    if authorization:
        return authorization
    return request.cookies.get(request.app.state.settings.cookie_name)


def set_session_cookie(request: Request, response: Response, session_out: SessionOut) -> None:
    settings = request.app.state.settings
    response.set_cookie(
        settings.cookie_name,
        session_out.token,
        max_age=int(settings.session_ttl.total_seconds()),
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
    )


def entry_out(entry) -> EntryOut:
    return EntryOut(**entry.to_dict())


def session_out(account, session) -> SessionOut:
    return SessionOut(account=AccountOut(**account.to_dict()), token=session.token, expires_time=session.expires_time)


auth_router = APIRouter(prefix="/api/auth", tags=["auth"], responses=ERROR_RESPONSES)
entries_router = APIRouter(prefix="/api/entries", tags=["entries"], responses=ERROR_RESPONSES)


@auth_router.post("/register", response_model=AccountOut, status_code=201)
def register(creds: RegisterRequest, journal: Journal = Depends(get_journal)):
    account = journal.register(creds.email, creds.password, creds.name)
    return AccountOut(**account.to_dict())


@auth_router.post("/login", response_model=SessionOut)
def login(creds: LoginRequest, request: Request, response: Response, journal: Journal = Depends(get_journal)):
    result = session_out(*journal.login(creds.email, creds.password))
    set_session_cookie(request, response, result)
    return result


@auth_router.post("/logout", response_model=SuccessResponse)
def logout(request: Request, response: Response, token: Optional[str] = Depends(get_token),
           journal: Journal = Depends(get_journal)):
    success = journal.logout(token)
    response.delete_cookie(request.app.state.settings.cookie_name)
    return SuccessResponse(success=success)


@auth_router.get("/session", response_model=AccountOut)
def current_session(token: Optional[str] = Depends(get_token), journal: Journal = Depends(get_journal)):
    return AccountOut(**journal.current_account(token).to_dict())


@entries_router.get("", response_model=List[EntryOut])
def list_entries(token: Optional[str] = Depends(get_token), journal: Journal = Depends(get_journal)):
    return [entry_out(e) for e in journal.list_entries(token)]


@entries_router.post("", response_model=EntryOut, status_code=201)
def add_entry(entry: EntryCreate, token: Optional[str] = Depends(get_token),
              journal: Journal = Depends(get_journal)):
    return entry_out(journal.add_entry(token, entry.title, entry.content))


@entries_router.get("/{entry_id}", response_model=EntryOut)
def get_entry(entry_id: int, token: Optional[str] = Depends(get_token), journal: Journal = Depends(get_journal)):
    return entry_out(journal.get_entry(token, entry_id))


@entries_router.patch("/{entry_id}", response_model=EntryOut)
def update_entry(entry_id: int, patch: EntryPatch, token: Optional[str] = Depends(get_token),
                 journal: Journal = Depends(get_journal)):
    return entry_out(journal.update_entry(token, entry_id, EntryUpdate(patch.title, patch.content)))


@entries_router.delete("/{entry_id}", response_model=SuccessResponse)
def delete_entry(entry_id: int, token: Optional[str] = Depends(get_token), journal: Journal = Depends(get_journal)):
    return SuccessResponse(success=journal.delete_entry(token, entry_id))
