"""jobinfo 解释器：将整个内容作为不透明作业元数据挂到作业上。"""

from __future__ import annotations

from typing import BinaryIO

from uws_sync.domain.interpreters.base import BaseContentInterpreter
from uws_sync.domain.models import CONTENT_JOBINFO, InlineContent, JobInfo


class JobInfoInterpreter(BaseContentInterpreter):
    code = "jobinfo"
    description = "Attach the submitted document verbatim as job info"

    def accept(self, name: str | None, content_type: str | None, stream: BinaryIO) -> list[InlineContent]:
        content = self._read_text(stream, content_type, name)
        if not content.strip():
            return []
        media_type = content_type.split(";")[0].strip() if content_type else None
        return [InlineContent(CONTENT_JOBINFO, JobInfo(content=content, content_type=media_type))]
