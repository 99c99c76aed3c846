"""
Single-endpoint RPC binding: ``POST /rpc/{procedure}`` with a JSON input.

Each procedure names an input model and a handler. The handler gets the
journal, the presented credential and the validated input, and returns a
JSON-ready value. Errors go through the same exception handlers as the
REST routes.
"""

from typing import Any, Callable, Dict, NamedTuple, Optional, Type

import pydantic
from fastapi import APIRouter, Body, Depends, HTTPException, Request, Response
from pydantic import BaseModel

from .domain import EntryUpdate, ValidationError
from .models import (
    ERROR_RESPONSES,
    AccountOut,
    EmptyInput,
    EntryCreate,
    EntryIdInput,
    EntryUpdateInput,
    LoginRequest,
    RegisterRequest,
    SuccessResponse,
    describe_errors,
)
from .routes import entry_out, get_journal, get_token, session_out, set_session_cookie
from .services import Journal


class Call(NamedTuple):
    journal: Journal
    token: Optional[str]
    request: Request
    response: Response


class Procedure(NamedTuple):
    input_model: Type[BaseModel]
    handler: Callable[[Call, Any], Any]


def _login(call: Call, data: LoginRequest):
    result = session_out(*call.journal.login(data.email, data.password))
    set_session_cookie(call.request, call.response, result)
    return result


def _logout(call: Call, data: EmptyInput):
    success = call.journal.logout(call.token)
    call.response.delete_cookie(call.request.app.state.settings.cookie_name)
    return SuccessResponse(success=success)


PROCEDURES: Dict[str, Procedure] = {
    "register": Procedure(
        RegisterRequest,
        lambda call, data: AccountOut(**call.journal.register(data.email, data.password, data.name).to_dict()),
    ),
    "login": Procedure(LoginRequest, _login),
    "logout": Procedure(EmptyInput, _logout),
    "getEntries": Procedure(
        EmptyInput,
        lambda call, data: [entry_out(e) for e in call.journal.list_entries(call.token)],
    ),
    "addEntry": Procedure(
        EntryCreate,
        lambda call, data: entry_out(call.journal.add_entry(call.token, data.title, data.content)),
    ),
    "updateEntry": Procedure(
        EntryUpdateInput,
        lambda call, data: entry_out(
            call.journal.update_entry(call.token, data.id, EntryUpdate(data.title, data.content))
        ),
    ),
    "deleteEntry": Procedure(
        EntryIdInput,
        lambda call, data: SuccessResponse(success=call.journal.delete_entry(call.token, data.id)),
    ),
}

router = APIRouter(prefix="/rpc", tags=["rpc"], responses=ERROR_RESPONSES)


@router.post("/{procedure}")
def call_procedure(procedure: str, request: Request, response: Response,
                   payload: Optional[Dict[str, Any]] = Body(None),
                   token: Optional[str] = Depends(get_token),
                   journal: Journal = Depends(get_journal)):
    target = PROCEDURES.get(procedure)
    if target is None:
        raise HTTPException(status_code=404, detail=f"Unknown procedure: {procedure}")
    try:
        data = target.input_model.model_validate(payload or {})
    except pydantic.ValidationError as e:
        raise ValidationError(describe_errors(e.errors())) from None
    return target.handler(Call(journal, token, request, response), data)
