"""请求内容解码器：按 Content-Type 将请求体转换为有序的归一化输入。"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator

from python_multipart.multipart import parse_options_header
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import ClientDisconnect, Request

from uws_sync.application.multipart import decode_multipart, interpret_body
from uws_sync.domain.errors import TransportError
from uws_sync.domain.interpreters.registry import InterpreterFactory
from uws_sync.domain.models import DecodedItem, FormValue, NormalizedInput

URLENCODED = "application/x-www-form-urlencoded"
MULTIPART = "multipart/form-data"

logger = logging.getLogger(__name__)


def media_type_of(content_type: str | None) -> str | None:
    """去掉 Content-Type 参数部分并统一小写。"""
    if not content_type:
        return None
    return content_type.split(";", 1)[0].strip().lower() or None


def client_ip_of(request: Request) -> str | None:
    """优先取 X-Forwarded-For 首跳地址，否则使用连接对端地址。"""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",", 1)[0].strip()
        if first:
            return first
    return request.client.host if request.client else None


class RequestChunks:
    """在工作线程中同步迭代请求体：每次向事件循环只拉取一个分块。"""

    def __init__(self, stream: AsyncIterator[bytes], loop: asyncio.AbstractEventLoop) -> None:
        self._stream = stream
        self._loop = loop

    def __iter__(self) -> RequestChunks:
        return self

    def __next__(self) -> bytes:
        future = asyncio.run_coroutine_threadsafe(self._pull(), self._loop)
        try:
            chunk = future.result()
        except (ClientDisconnect, OSError) as exc:
            raise TransportError(f"failed to read request body: {exc}") from exc
        if chunk is None:
            raise StopIteration
        return chunk

    async def _pull(self) -> bytes | None:
        try:
            return await self._stream.__anext__()
        except StopAsyncIteration:
            return None


class ContentDecoder:
    """单次顺序读取请求体；每个流只交给内容解释器消费一次。"""
    def __init__(self, interpreter_factory: InterpreterFactory | None) -> None:
        self._interpreter_factory = interpreter_factory

    async def decode(self, request: Request, job_id: str | None = None) -> NormalizedInput:
        """解码请求并返回 NormalizedInput，传输层失败抛出 TransportError。"""
        inputs = NormalizedInput(
            request_path=request.url.path,
            client_ip=client_ip_of(request),
            job_id=job_id,
        )
        # 与 servlet 语义一致：查询串参数先于请求体字段。
        inputs.items.extend(FormValue(name, value) for name, value in request.query_params.multi_items())
        if request.method in {"GET", "HEAD"}:
            return inputs

        content_type = request.headers.get("content-type")
        media_type = media_type_of(content_type)
        logger.debug("decode request body: content_type=%s", media_type)
        # 每个请求创建独立解释器实例，避免跨请求共享状态。
        interpreter = self._interpreter_factory() if self._interpreter_factory else None

        if media_type == URLENCODED:
            inputs.items.extend(await self._decode_urlencoded(request))
        elif media_type == MULTIPART:
            _, options = parse_options_header(content_type)
            boundary = options.get(b"boundary")
            if not boundary:
                raise TransportError("missing boundary in multipart content type")
            chunks = RequestChunks(request.stream(), asyncio.get_running_loop())
            # 解析与解释都在工作线程中按分块推进，分段之间严格串行。
            inputs.items.extend(await asyncio.to_thread(decode_multipart, chunks, boundary, interpreter))
        elif interpreter is not None:
            chunks = RequestChunks(request.stream(), asyncio.get_running_loop())
            inputs.items.extend(await asyncio.to_thread(interpret_body, chunks, content_type, interpreter))
        else:
            logger.warning(
                "request body ignored: no inline content handler configured",
                extra={"event": "decode.body.ignored", "op": media_type},
            )
        return inputs

    @staticmethod
    async def _decode_urlencoded(request: Request) -> list[DecodedItem]:
        try:
            form = await request.form()
        except (StarletteHTTPException, ClientDisconnect) as exc:
            raise TransportError(f"failed to parse form body: {getattr(exc, 'detail', None) or exc}") from exc
        try:
            return [FormValue(name, value) for name, value in form.multi_items() if isinstance(value, str)]
        finally:
            await form.close()
