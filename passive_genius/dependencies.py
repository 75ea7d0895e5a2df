"""FastAPI dependencies and domain-error translation shared by the routers."""

from __future__ import annotations

from typing import Dict, Type

from fastapi import Depends, HTTPException, Request

from .errors import (
    ChannelNotFoundError,
    EmptyMessageError,
    IdeaNotFoundError,
    InvalidTransitionError,
    PassiveGeniusError,
    PlanUnavailableError,
    ProfileIncompleteError,
    SessionNotFoundError,
    TaskNotFoundError,
)
from .export import PDFExporter
from .journey import AppSession, SessionRegistry

STATUS_BY_ERROR: Dict[Type[PassiveGeniusError], int] = {
    SessionNotFoundError: 404,
    IdeaNotFoundError: 404,
    TaskNotFoundError: 404,
    ChannelNotFoundError: 404,
    PlanUnavailableError: 409,
    InvalidTransitionError: 409,
    ProfileIncompleteError: 422,
    EmptyMessageError: 422,
}


def to_http_error(exc: PassiveGeniusError) -> HTTPException:
    """Map a domain error onto the HTTP status the client should see."""

    for error_type, status_code in STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.registry


def get_exporter(request: Request) -> PDFExporter:
    return request.app.state.exporter


def get_session(session_id: str, registry: SessionRegistry = Depends(get_registry)) -> AppSession:
    try:
        return registry.get(session_id)
    except SessionNotFoundError as exc:
        raise to_http_error(exc) from exc
