"""流式 multipart 解析：按传输顺序逐段交出数据，请求体不整体缓冲。"""

from __future__ import annotations

import io
import logging
from collections import deque
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Any

from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser, parse_options_header

from uws_sync.domain.errors import FormatError, TransportError
from uws_sync.domain.interpreters.base import BaseContentInterpreter
from uws_sync.domain.models import DecodedItem, FormValue

logger = logging.getLogger(__name__)

_HEADERS = "headers"
_DATA = "data"
_END = "end"


class ChunkStream(io.RawIOBase):
    """只读二进制流，按需从分块迭代器拉取数据，任意时刻只持有一个分块。"""

    def __init__(self, chunks: Iterable[bytes]) -> None:
        super().__init__()
        self._chunks = iter(chunks)
        self._buffer = b""
        self._eof = False

    def readable(self) -> bool:
        return True

    def readinto(self, target: Any) -> int:
        while not self._buffer and not self._eof:
            try:
                self._buffer = next(self._chunks)
            except StopIteration:
                self._eof = True
        if not self._buffer:
            return 0
        size = min(len(target), len(self._buffer))
        target[:size] = self._buffer[:size]
        self._buffer = self._buffer[size:]
        return size


@dataclass(slots=True)
class MultipartPart:
    """单个 multipart 分段；data 只能迭代一次。"""
    name: str
    filename: str | None
    content_type: str | None
    data: Iterator[bytes]


class MultipartReader:
    """驱动 python-multipart 回调解析器，只在需要下一个事件时才读取下一个分块。"""

    def __init__(self, chunks: Iterable[bytes], boundary: bytes) -> None:
        self._chunks = iter(chunks)
        self._events: deque[tuple[Any, ...]] = deque()
        self._exhausted = False
        self._ended = False
        self._header_field = b""
        self._header_value = b""
        self._headers: dict[bytes, bytes] = {}
        self._parser = MultipartParser(
            boundary,
            {
                "on_part_begin": self._on_part_begin,
                "on_part_data": self._on_part_data,
                "on_part_end": self._on_part_end,
                "on_header_field": self._on_header_field,
                "on_header_value": self._on_header_value,
                "on_header_end": self._on_header_end,
                "on_headers_finished": self._on_headers_finished,
                "on_end": self._on_end,
            },
        )

    def parts(self) -> Iterator[MultipartPart]:
        """按传输顺序产出分段；调用方未读完的数据在切换到下一段前被丢弃。"""
        while True:
            event = self._next_event()
            if event is None:
                return
            if event[0] != _HEADERS:
                continue
            part = self._build_part(event[1])
            yield part
            for _ in part.data:
                pass

    def _build_part(self, headers: dict[bytes, bytes]) -> MultipartPart:
        _, options = parse_options_header(headers.get(b"content-disposition", b""))
        if b"name" not in options:
            raise TransportError("multipart part without a field name")
        filename = options.get(b"filename")
        content_type = headers.get(b"content-type")
        return MultipartPart(
            name=options[b"name"].decode("utf-8", errors="replace"),
            filename=filename.decode("utf-8", errors="replace") if filename is not None else None,
            content_type=content_type.decode("latin-1") if content_type else None,
            data=self._part_data(),
        )

    def _part_data(self) -> Iterator[bytes]:
        while True:
            event = self._next_event()
            if event is None:
                raise TransportError("multipart part is not terminated")
            if event[0] == _END:
                return
            yield event[1]

    def _next_event(self) -> tuple[Any, ...] | None:
        while not self._events:
            if self._exhausted:
                return None
            try:
                chunk = next(self._chunks)
            except StopIteration:
                self._exhausted = True
                self._parser.finalize()
                if not self._ended:
                    raise TransportError("truncated multipart body") from None
                continue
            try:
                self._parser.write(chunk)
            except MultipartParseError as exc:
                raise TransportError(f"malformed multipart body: {exc}") from exc
        return self._events.popleft()

    def _on_part_begin(self) -> None:
        self._headers = {}

    def _on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._header_field += data[start:end]

    def _on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._header_value += data[start:end]

    def _on_header_end(self) -> None:
        self._headers[self._header_field.lower()] = self._header_value
        self._header_field = b""
        self._header_value = b""

    def _on_headers_finished(self) -> None:
        self._events.append((_HEADERS, dict(self._headers)))

    def _on_part_data(self, data: bytes, start: int, end: int) -> None:
        if end > start:
            self._events.append((_DATA, bytes(data[start:end])))

    def _on_part_end(self) -> None:
        self._events.append((_END,))

    def _on_end(self) -> None:
        self._ended = True


def decode_multipart(
    chunks: Iterable[bytes],
    boundary: bytes,
    interpreter: BaseContentInterpreter | None,
) -> list[DecodedItem]:
    """顺序解码 multipart：普通字段读成字符串，文件分段交给解释器并在下一段前关闭。"""
    items: list[DecodedItem] = []
    for part in MultipartReader(chunks, boundary).parts():
        if part.filename is None:
            raw = b"".join(part.data)
            try:
                items.append(FormValue(part.name, raw.decode("utf-8")))
            except UnicodeDecodeError as exc:
                raise FormatError(part.name, raw[:32].decode("utf-8", errors="replace"), "undecodable form field") from exc
        elif interpreter is None:
            logger.warning(
                "upload ignored: no inline content handler configured",
                extra={"event": "decode.upload.ignored", "op": part.name},
            )
        else:
            with ChunkStream(part.data) as stream:
                results = interpreter.accept(part.name, part.content_type, stream)
            logger.debug("inline content decoded: name=%s results=%s", part.name, len(results))
            items.extend(results)
    return items


def interpret_body(
    chunks: Iterable[bytes],
    content_type: str | None,
    interpreter: BaseContentInterpreter,
) -> list[DecodedItem]:
    """将整个请求体作为一个流交给解释器；空请求体不调用解释器。"""
    source = iter(chunks)
    first = next((chunk for chunk in source if chunk), None)
    if first is None:
        logger.debug("empty request body, nothing to interpret")
        return []

    def _replay() -> Iterator[bytes]:
        yield first
        yield from source

    with ChunkStream(_replay()) as stream:
        results = interpreter.accept(None, content_type, stream)
    logger.debug("inline content decoded: name=None results=%s", len(results))
    return list(results)
