"""保留属性测试：覆盖名称分类、时间解析与取值转换的边界行为。"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from uws_sync.domain.attributes import apply_attribute, classify
from uws_sync.domain.dates import format_ivoa_date, parse_ivoa_date
from uws_sync.domain.enums import ReservedAttribute
from uws_sync.domain.errors import FormatError
from uws_sync.domain.models import Job


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("RUNID", ReservedAttribute.run_id),
        ("runId", ReservedAttribute.run_id),
        ("destruction", ReservedAttribute.destruction_time),
        ("ExecutionDuration", ReservedAttribute.execution_duration),
        ("QUOTE", ReservedAttribute.quote),
        ("RUNID2", None),
        ("RUN", None),
        ("foo", None),
    ],
)
def test_classify_is_case_insensitive_exact_match(name: str, expected: ReservedAttribute | None) -> None:
    assert classify(name) is expected


def test_parse_ivoa_date_accepts_optional_utc_suffix() -> None:
    expected = datetime(2025, 1, 1, 12, 30, 45, 123000, tzinfo=timezone.utc)
    assert parse_ivoa_date("2025-01-01T12:30:45.123") == expected
    assert parse_ivoa_date("2025-01-01T12:30:45.123Z") == expected


@pytest.mark.parametrize(
    "text",
    ["2025-01-01", "2025-01-01T00:00:00", "2025-01-01T00:00:00.0", "2025-01-01T00:00:00.000+01:00", "tomorrow"],
)
def test_parse_ivoa_date_rejects_other_formats(text: str) -> None:
    with pytest.raises(ValueError):
        parse_ivoa_date(text)


def test_format_ivoa_date_renders_utc_milliseconds() -> None:
    value = datetime(2025, 1, 1, 0, 0, 0, 987654, tzinfo=timezone.utc)
    assert format_ivoa_date(value) == "2025-01-01T00:00:00.987"
    assert parse_ivoa_date(format_ivoa_date(value)) == value.replace(microsecond=987000)


def test_run_id_stored_verbatim() -> None:
    job = Job()
    apply_attribute(job, ReservedAttribute.run_id, "  my run  ")
    assert job.run_id == "  my run  "


def test_blank_destruction_and_quote_clear_previous_value() -> None:
    """空值应清除已有时间字段，而不是报错。"""
    job = Job()
    apply_attribute(job, ReservedAttribute.destruction_time, "2025-01-01T00:00:00.000")
    apply_attribute(job, ReservedAttribute.quote, "2025-01-02T00:00:00.000")
    assert job.destruction_time is not None
    assert job.quote is not None

    apply_attribute(job, ReservedAttribute.destruction_time, "")
    apply_attribute(job, ReservedAttribute.quote, "   ")

    assert job.destruction_time is None
    assert job.quote is None


def test_invalid_timestamp_raises_format_error_with_field_and_value() -> None:
    job = Job()
    with pytest.raises(FormatError) as exc_info:
        apply_attribute(job, ReservedAttribute.quote, "2025/01/01")
    assert exc_info.value.field == "QUOTE"
    assert exc_info.value.value == "2025/01/01"


def test_execution_duration_parsing() -> None:
    job = Job()
    apply_attribute(job, ReservedAttribute.execution_duration, "600")
    assert job.execution_duration == 600

    apply_attribute(job, ReservedAttribute.execution_duration, "")
    assert job.execution_duration == 600

    # 负数交由作业管理器校验。
    apply_attribute(job, ReservedAttribute.execution_duration, "-5")
    assert job.execution_duration == -5


def test_execution_duration_not_a_number() -> None:
    job = Job()
    with pytest.raises(FormatError) as exc_info:
        apply_attribute(job, ReservedAttribute.execution_duration, "notanumber")
    assert exc_info.value.field == "EXECUTIONDURATION"
    assert exc_info.value.value == "notanumber"
    assert job.execution_duration is None


def test_apply_attribute_is_idempotent() -> None:
    job = Job()
    for _ in range(2):
        apply_attribute(job, ReservedAttribute.destruction_time, "2025-01-01T00:00:00.000")
    assert job.destruction_time == datetime(2025, 1, 1, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "text",
    ["1_000", "99999999999999999999", "-9223372036854775809", "٣", "1.5", "0x10"],
)
def test_execution_duration_rejects_non_long_values(text: str) -> None:
    """只接受 ASCII 十进制且在 64 位有符号范围内的整数。"""
    job = Job()
    with pytest.raises(FormatError) as exc_info:
        apply_attribute(job, ReservedAttribute.execution_duration, text)
    assert exc_info.value.field == "EXECUTIONDURATION"
    assert job.execution_duration is None


def test_execution_duration_accepts_64_bit_bounds() -> None:
    job = Job()
    apply_attribute(job, ReservedAttribute.execution_duration, " 9223372036854775807 ")
    assert job.execution_duration == 2**63 - 1
    apply_attribute(job, ReservedAttribute.execution_duration, "+42")
    assert job.execution_duration == 42
