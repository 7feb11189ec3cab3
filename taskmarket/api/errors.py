from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from taskmarket.services.errors import LedgerError

logger = logging.getLogger(__name__)


def observe_ledger_outcome(request: Request, outcome: str) -> None:
    metrics = getattr(request.app.state, "metrics", None)
    if metrics is None:
        return
    route = request.scope.get("route")
    operation = getattr(route, "name", None) or request.url.path
    metrics.observe_ledger_operation(operation, outcome)


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    observe_ledger_outcome(request, exc.code.lower())
    logger.info(
        "ledger operation refused",
        extra={
            "request_id": getattr(request.state, "request_id", None),
            "path": request.url.path,
            "error": exc.code,
            **{f"ctx_{key}": value for key, value in exc.context.items()},
        },
    )
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message, **exc.context})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LedgerError, ledger_error_handler)
