"""FastAPI 应用入口：启动时建表并校验内容解释器配置，挂载同步作业路由。"""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
import logging
import time
from uuid import uuid4

from fastapi import FastAPI, Request, Response

from uws_sync.api.router import api_router
from uws_sync.application.container import get_interpreter_factory, shutdown_container_resources
from uws_sync.config import get_settings
from uws_sync.infra.db.session import init_db
from uws_sync.infra.logging.context import bind_log_context
from uws_sync.infra.logging.setup import configure_logging, shutdown_logging

REQUEST_ID_HEADER = "X-Request-Id"

settings = get_settings()
configure_logging(settings)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    init_db()
    # 未知的解释器键在启动阶段即失败，不会等到首个请求。
    handler_key = settings.inline_content_handler_key()
    get_interpreter_factory()
    logger.info(
        "sync gateway ready: inline_content_handler=%s exec_on_post=%s",
        handler_key or "-",
        settings.exec_on_post,
        extra={"event": "api.startup.succeeded"},
    )
    try:
        yield
    finally:
        shutdown_container_resources()
        logger.info("sync gateway stopped", extra={"event": "api.shutdown.succeeded"})
        shutdown_logging()


app = FastAPI(title=settings.app_name, lifespan=lifespan)


@app.middleware("http")
async def attach_request_id(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
    """为每个请求绑定 request_id 日志上下文，并回写到响应头。"""
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex
    op = f"{request.method} {request.url.path}"
    started = time.perf_counter()
    with bind_log_context(request_id=request_id):
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("%s failed", op, extra={"event": "http.request.failed", "op": op})
            raise
        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        logger.info(
            "%s -> %s",
            op,
            response.status_code,
            extra={"event": "http.request", "op": op, "duration_ms": elapsed_ms, "status_code": response.status_code},
        )
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


app.include_router(api_router)
