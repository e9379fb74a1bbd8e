import time
from uuid import uuid4

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import Response
from structlog import contextvars as structlog_contextvars

from . import __version__
from .config import settings
from .logging import configure_logging, logger
from .routers import health, revision


class AccessLogMiddleware(BaseHTTPMiddleware):
    """Assign a request ID and emit one structured `request_complete` line per call.

    request_id は ContextVar に束縛し、処理中に出た他のログにも自動で付く。
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = time.time()
        path = request.url.path
        method = request.method
        request_id = request.headers.get("x-request-id") or uuid4().hex
        request.state.request_id = request_id
        structlog_contextvars.bind_contextvars(request_id=request_id)
        is_error = False
        status_code: int | None = None
        error_type: str | None = None
        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers["X-Request-ID"] = request_id
            return response
        except Exception as exc:
            is_error = True
            status_code = 500
            error_type = exc.__class__.__name__
            raise
        finally:
            latency_ms = (time.time() - start) * 1000
            log_method = logger.error if is_error else logger.info
            log_method(
                "request_complete",
                path=path,
                method=method,
                status_code=status_code,
                latency_ms=latency_ms,
                is_error=is_error,
                error_type=error_type,
            )
            structlog_contextvars.unbind_contextvars("request_id")


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="Revision Planner API", version=__version__)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(AccessLogMiddleware)
    app.include_router(health.router)  # ヘルスチェック
    app.include_router(revision.router, prefix="/api")  # 復習日程・アジェンダ
    logger.info("app_configured", environment=settings.environment, store_backend=settings.store_backend)
    return app


app = create_app()
