"""流式 multipart 测试：验证分段按序交给解释器，且前一段关闭后才读取后续分块。"""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from uws_sync.application.multipart import ChunkStream, decode_multipart, interpret_body
from uws_sync.domain.errors import TransportError
from uws_sync.domain.interpreters.text_param import TextParamInterpreter
from uws_sync.domain.models import FormValue, InlineContent

BOUNDARY = b"b0undary"


def _part(name: str, payload: bytes, filename: str | None = None) -> bytes:
    disposition = f'form-data; name="{name}"'
    if filename is not None:
        disposition += f'; filename="{filename}"'
    return (
        b"--" + BOUNDARY + b"\r\n"
        + f"Content-Disposition: {disposition}\r\n".encode()
        + b"Content-Type: text/plain\r\n\r\n"
        + payload + b"\r\n"
    )


class _RecordingChunks:
    """逐块产出请求体，并把每次读取记录到共享事件列表。"""

    def __init__(self, chunks: list[bytes], events: list[str]) -> None:
        self._chunks = chunks
        self._events = events

    def __iter__(self) -> Iterator[bytes]:
        for index, chunk in enumerate(self._chunks):
            self._events.append(f"read chunk{index}")
            yield chunk


class _RecordingInterpreter(TextParamInterpreter):
    def __init__(self, events: list[str]) -> None:
        self._events = events
        self.streams: list[ChunkStream] = []

    def accept(self, name, content_type, stream):
        self.streams.append(stream)
        results = super().accept(name, content_type, stream)
        self._events.append(f"accept {name}")
        return results


def test_each_upload_is_interpreted_and_closed_before_next_part_is_read() -> None:
    events: list[str] = []
    # 第一块包含完整的 doc1 以及下一段的起始边界，第二块才是 doc2。
    chunk0 = _part("doc1", b"first", "a.txt") + b"--" + BOUNDARY + b"\r\n"
    chunk1 = (
        b'Content-Disposition: form-data; name="doc2"; filename="b.txt"\r\n'
        b"Content-Type: text/plain\r\n\r\nsecond\r\n"
        b"--" + BOUNDARY + b"--\r\n"
    )
    interpreter = _RecordingInterpreter(events)

    items = decode_multipart(_RecordingChunks([chunk0, chunk1], events), BOUNDARY, interpreter)

    assert items == [InlineContent("doc1", "first"), InlineContent("doc2", "second")]
    assert events == ["read chunk0", "accept doc1", "read chunk1", "accept doc2"]
    assert [stream.closed for stream in interpreter.streams] == [True, True]


def test_form_fields_and_uploads_keep_transmission_order() -> None:
    body = (
        _part("RUNID", b"r1")
        + _part("doc", b"payload", "d.txt")
        + _part("foo", "bär".encode())
        + b"--" + BOUNDARY + b"--\r\n"
    )
    # 逐字节投喂，验证跨分块的头部与数据拼接。
    chunks = [body[i:i + 1] for i in range(len(body))]

    items = decode_multipart(chunks, BOUNDARY, TextParamInterpreter())

    assert items == [FormValue("RUNID", "r1"), InlineContent("doc", "payload"), FormValue("foo", "bär")]


def test_uploads_skipped_without_interpreter() -> None:
    body = _part("doc", b"payload", "d.txt") + _part("foo", b"bar") + b"--" + BOUNDARY + b"--\r\n"

    assert decode_multipart([body], BOUNDARY, None) == [FormValue("foo", "bar")]


def test_truncated_body_raises_transport_error() -> None:
    body = _part("doc", b"payload", "d.txt")[:-4]
    with pytest.raises(TransportError):
        decode_multipart([body], BOUNDARY, TextParamInterpreter())


def test_part_without_name_raises_transport_error() -> None:
    body = b"--" + BOUNDARY + b"\r\nContent-Disposition: form-data\r\n\r\nx\r\n--" + BOUNDARY + b"--\r\n"
    with pytest.raises(TransportError):
        decode_multipart([body], BOUNDARY, None)


def test_interpret_body_reads_across_chunks_and_skips_empty_body() -> None:
    interpreter = TextParamInterpreter()
    assert interpret_body([b"ab", b"", b"cd"], "text/plain", interpreter) == [InlineContent("UPLOAD", "abcd")]
    assert interpret_body([b"", b""], "text/plain", interpreter) == []
