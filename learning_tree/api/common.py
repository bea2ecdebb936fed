from typing import Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from learning_tree.schemas import ErrorResponse
from learning_tree.services.session_store import SessionStore


def get_session_store(request: Request) -> SessionStore:
    """Dependency: the store created at start-up and kept on app.state."""
    return request.app.state.session_store


def error_response(
    status_code: int,
    error: str,
    message: Optional[str] = None,
    details: Optional[str] = None,
) -> JSONResponse:
    body = ErrorResponse(error=error, message=message, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))
