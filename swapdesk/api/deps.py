"""Shared helpers for the HTTP routers."""

from fastapi import HTTPException, Request

from ..errors import (
    ConfigurationFailure,
    FetchFailure,
    ParseFailure,
    SwapDeskError,
    ValidationFailure,
)
from ..services.session import SwapSession


def get_session(request: Request) -> SwapSession:
    session = getattr(request.app.state, "session", None)
    if session is None:
        raise HTTPException(status_code=503, detail="Session not initialized")
    return session


def http_error(exc: SwapDeskError) -> HTTPException:
    """Map an engine error onto the status code the API reports for it."""
    if isinstance(exc, (ValidationFailure, ParseFailure)):
        return HTTPException(status_code=422, detail=str(exc))
    if isinstance(exc, ConfigurationFailure):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, FetchFailure):
        return HTTPException(status_code=502, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))
