"""json 解释器：从 JSON 对象中提取作业元数据、参数替换指令与普通参数。"""

from __future__ import annotations

import json
from typing import Any, BinaryIO

from uws_sync.domain.errors import FormatError
from uws_sync.domain.interpreters.base import BaseContentInterpreter
from uws_sync.domain.models import (
    CONTENT_JOBINFO,
    CONTENT_PARAM_REPLACE,
    InlineContent,
    JobInfo,
    ParameterReplacement,
)


class JsonContentInterpreter(BaseContentInterpreter):
    """解析 JSON 对象，键按出现顺序转换为内联内容。"""
    code = "json"
    description = "Decode a JSON object into job info, replacement directives and parameters"

    def accept(self, name: str | None, content_type: str | None, stream: BinaryIO) -> list[InlineContent]:
        field = name or "content"
        text = self._read_text(stream, content_type, name)
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise FormatError(field, text[:64], f"invalid JSON: {exc.msg}") from exc
        if not isinstance(payload, dict):
            raise FormatError(field, text[:64], "JSON content must be an object")

        results: list[InlineContent] = []
        for key, value in payload.items():
            if key == CONTENT_JOBINFO:
                results.append(InlineContent(CONTENT_JOBINFO, self._job_info(field, value)))
            elif key == CONTENT_PARAM_REPLACE:
                results.append(InlineContent(CONTENT_PARAM_REPLACE, self._replacement(field, value)))
            elif isinstance(value, list):
                # 数组展开为同名多值参数。
                results.extend(InlineContent(key, self._param_value(item)) for item in value)
            else:
                results.append(InlineContent(key, self._param_value(value)))
        return results

    @staticmethod
    def _param_value(value: Any) -> str | None:
        # null 保持为空（不生成参数），其余非字符串值按 JSON 文本保存。
        if value is None or isinstance(value, str):
            return value
        return json.dumps(value, ensure_ascii=False)

    @staticmethod
    def _job_info(field: str, value: Any) -> JobInfo:
        if isinstance(value, str):
            return JobInfo(content=value)
        if isinstance(value, dict):
            content = value.get("content")
            if isinstance(content, str):
                return JobInfo(content=content, content_type=value.get("contentType"), valid=value.get("valid"))
            return JobInfo(content=json.dumps(value, ensure_ascii=False), content_type="application/json")
        raise FormatError(field, str(value)[:64], f"{CONTENT_JOBINFO} must be a string or object")

    @staticmethod
    def _replacement(field: str, value: Any) -> ParameterReplacement:
        if not isinstance(value, dict) or not isinstance(value.get("original"), str):
            raise FormatError(field, str(value)[:64], f"{CONTENT_PARAM_REPLACE} requires an 'original' string")
        new = value.get("new", "")
        if not isinstance(new, str):
            raise FormatError(field, str(new)[:64], f"{CONTENT_PARAM_REPLACE} 'new' must be a string")
        return ParameterReplacement(original=value["original"], new=new)
