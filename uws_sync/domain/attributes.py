"""保留作业属性：名称分类与取值强类型转换。"""

from __future__ import annotations

import re
from datetime import datetime

from uws_sync.domain.dates import parse_ivoa_date
from uws_sync.domain.enums import ReservedAttribute
from uws_sync.domain.errors import FormatError
from uws_sync.domain.models import Job

_LONG_RE = re.compile(r"^[+-]?[0-9]+$")
_LONG_MIN = -(2**63)
_LONG_MAX = 2**63 - 1

_RESERVED_BY_NAME: dict[str, ReservedAttribute] = {item.value.upper(): item for item in ReservedAttribute}


def classify(name: str) -> ReservedAttribute | None:
    """按名称大小写不敏感地精确匹配保留属性，非保留属性返回 None。"""
    return _RESERVED_BY_NAME.get(name.upper())


def _has_text(value: str | None) -> bool:
    return value is not None and bool(value.strip())


def apply_attribute(job: Job, attribute: ReservedAttribute, value: str | None) -> None:
    """将保留属性值写入作业字段，格式非法时抛出 FormatError。"""
    if attribute is ReservedAttribute.run_id:
        job.run_id = value
    elif attribute is ReservedAttribute.destruction_time:
        job.destruction_time = _parse_date(attribute, value)
    elif attribute is ReservedAttribute.quote:
        job.quote = _parse_date(attribute, value)
    elif attribute is ReservedAttribute.execution_duration:
        if not _has_text(value):
            return
        job.execution_duration = _parse_long(attribute, value)


def _parse_date(attribute: ReservedAttribute, value: str | None) -> datetime | None:
    # 空值表示清除该字段。
    if not _has_text(value):
        return None
    try:
        return parse_ivoa_date(value)
    except ValueError as exc:
        raise FormatError(attribute.attribute_name, value, "not an IVOA UTC timestamp") from exc


def _parse_long(attribute: ReservedAttribute, value: str) -> int:
    # 仅接受 ASCII 十进制整数，且必须落在有符号 64 位范围内。
    candidate = value.strip()
    if not _LONG_RE.match(candidate):
        raise FormatError(attribute.attribute_name, value, "not an integer")
    parsed = int(candidate)
    if not _LONG_MIN <= parsed <= _LONG_MAX:
        raise FormatError(attribute.attribute_name, value, "out of 64-bit integer range")
    # 负数不在此层拦截，由作业管理器决定取值范围。
    return parsed
