"""FastAPI integration for the runtime exception handler."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .handler import RuntimeExceptionHandler


def install_exception_handler(app: FastAPI, handler: RuntimeExceptionHandler) -> None:
    """Answer every unhandled exception with the structured error body."""

    @app.exception_handler(Exception)
    async def _handle_exception(request: Request, exc: Exception) -> JSONResponse:
        response = handler.handle(exc, request_path=request.url.path)
        return JSONResponse(status_code=response.status_code, content=response.to_dict())
