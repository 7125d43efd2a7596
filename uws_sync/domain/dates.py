"""IVOA 时间格式工具：无状态的 UTC 时间解析与格式化函数。"""

from __future__ import annotations

import re
from datetime import datetime, timezone

IVOA_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S.%f"

# 固定毫秒精度，仅允许可选的 Z 后缀表示 UTC。
_IVOA_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z?$")


def parse_ivoa_date(text: str) -> datetime:
    """解析 IVOA UTC 时间字符串，格式不符时抛出 ValueError。"""
    candidate = text.strip()
    if not _IVOA_DATE_RE.match(candidate):
        raise ValueError(f"expected IVOA UTC format YYYY-MM-DDTHH:MM:SS.sss, got {text!r}")
    parsed = datetime.strptime(candidate.rstrip("Z"), IVOA_DATE_FORMAT)
    return parsed.replace(tzinfo=timezone.utc)


def format_ivoa_date(value: datetime) -> str:
    """将时间转换到 UTC 并输出 IVOA 格式（毫秒精度）。"""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}"
