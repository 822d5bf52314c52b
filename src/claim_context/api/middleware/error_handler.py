"""Global exception handlers producing the ``{success: false, ...}`` envelope."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from claim_context.api.operations import error_response
from claim_context.exceptions import ClaimContextError


def register_error_handlers(app: FastAPI) -> None:
    """Register exception-to-HTTP-status mappings."""

    @app.exception_handler(RequestValidationError)
    async def handle_invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={
                "success": False,
                "error": "Request body failed validation",
                "error_type": "invalid_request",
                "retryable": False,
                "details": jsonable_errors(exc),
            },
        )

    @app.exception_handler(ClaimContextError)
    async def handle_domain_error(request: Request, exc: ClaimContextError) -> JSONResponse:
        result = error_response(exc)
        return JSONResponse(status_code=result.status_code, content=result.body)


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [{"loc": list(e.get("loc", ())), "msg": e.get("msg", ""), "type": e.get("type", "")} for e in exc.errors()]
