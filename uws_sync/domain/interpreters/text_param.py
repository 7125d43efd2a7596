"""text-param 解释器：将上传的文本内容作为普通作业参数。"""

from __future__ import annotations

from typing import BinaryIO

from uws_sync.domain.interpreters.base import BaseContentInterpreter
from uws_sync.domain.models import InlineContent

DEFAULT_PARAM_NAME = "UPLOAD"


class TextParamInterpreter(BaseContentInterpreter):
    code = "text-param"
    description = "Store uploaded text as a parameter named after the form field"

    def accept(self, name: str | None, content_type: str | None, stream: BinaryIO) -> list[InlineContent]:
        return [InlineContent(name or DEFAULT_PARAM_NAME, self._read_text(stream, content_type, name))]
