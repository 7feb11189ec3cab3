from __future__ import annotations

import logging
import time
import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from taskmarket import __version__
from taskmarket.api.admin import router as admin_router
from taskmarket.api.auth import router as auth_router
from taskmarket.api.errors import register_exception_handlers
from taskmarket.api.tasks import router as tasks_router
from taskmarket.api.wallet import router as wallet_router
from taskmarket.core.config import get_settings
from taskmarket.core.logging import configure_logging
from taskmarket.core.observability import PrometheusMetrics

configure_logging()
request_logger = logging.getLogger("taskmarket.requests")


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        request.state.request_id = request_id

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        response.headers["X-Request-ID"] = request_id
        metrics = getattr(request.app.state, "metrics", None)
        if metrics is not None:
            metrics.observe_http_request(
                path=request.url.path,
                method=request.method,
                status_code=response.status_code,
                elapsed_seconds=elapsed_ms / 1000,
            )
        request_logger.info(
            "request completed",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "status": response.status_code,
                "elapsed_ms": round(elapsed_ms, 2),
            },
        )
        return response


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    app.state.metrics = PrometheusMetrics.from_env()
    yield


app = FastAPI(title="Taskmarket Ledger", version=__version__, lifespan=lifespan)
app.state.metrics = PrometheusMetrics(enabled=False)
app.add_middleware(RequestContextMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_exception_handlers(app)
app.include_router(auth_router)
app.include_router(tasks_router)
app.include_router(wallet_router)
app.include_router(admin_router)


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok", "service": "taskmarket"}


@app.get("/metrics")
def metrics(request: Request) -> Response:
    body = request.app.state.metrics.render()
    return Response(content=body, media_type="text/plain; version=0.0.4")
