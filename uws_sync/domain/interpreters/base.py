"""内容解释器抽象基类，约束原始请求流到内联内容的转换接口。"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import BinaryIO

from uws_sync.domain.errors import FormatError
from uws_sync.domain.models import InlineContent


class BaseContentInterpreter(ABC):
    """内容解释器抽象基类；每个请求使用独立实例。"""
    code: str
    description: str = ""

    @abstractmethod
    def accept(self, name: str | None, content_type: str | None, stream: BinaryIO) -> list[InlineContent]:
        """读取一次流并返回零到多个内联内容；name 为空表示整个请求体。"""

    @staticmethod
    def _read_text(stream: BinaryIO, content_type: str | None, name: str | None) -> str:
        """按 content-type 中的 charset 解码流内容，默认 UTF-8；无法解码时抛出 FormatError。"""
        charset = "utf-8"
        if content_type:
            for segment in content_type.split(";")[1:]:
                key, _, value = segment.strip().partition("=")
                if key.lower() == "charset" and value:
                    charset = value.strip('"')
        try:
            return stream.read().decode(charset)
        except (UnicodeDecodeError, LookupError) as exc:
            raise FormatError(name or "content", charset, "undecodable content") from exc
