"""领域数据结构定义：作业、参数、内联内容与归一化请求输入。"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from uws_sync.domain.enums import ExecutionPhase

CONTENT_JOBINFO = "jobInfo"
CONTENT_PARAM_REPLACE = "paramReplace"


@dataclass(slots=True)
class Parameter:
    """作业参数，名称区分大小写，允许重名。"""
    name: str
    value: str


@dataclass(slots=True, frozen=True)
class ParameterReplacement:
    """参数值字面替换指令。"""
    original: str
    new: str


@dataclass(slots=True)
class JobInfo:
    """内联作业元数据，内容格式对本服务不透明。"""
    content: str
    content_type: str | None = None
    valid: bool | None = None


@dataclass(slots=True)
class Job:
    """规范化作业描述，标识由作业管理器在持久化时分配。"""
    job_id: str | None = None
    phase: ExecutionPhase = ExecutionPhase.pending
    run_id: str | None = None
    destruction_time: datetime | None = None
    execution_duration: int | None = None
    quote: datetime | None = None
    parameters: list[Parameter] = field(default_factory=list)
    job_info: JobInfo | None = None
    request_path: str | None = None
    remote_ip: str | None = None
    created_at: datetime | None = None


@dataclass(slots=True, frozen=True)
class FormValue:
    """请求中的字面字段值。"""
    name: str
    value: str


@dataclass(slots=True, frozen=True)
class InlineContent:
    """内容解释器输出，name 为保留标签或普通参数名。"""
    name: str
    value: Any


DecodedItem = FormValue | InlineContent


@dataclass(slots=True)
class NormalizedInput:
    """传输无关的请求输入，items 保持请求中的出现顺序。"""
    request_path: str
    client_ip: str | None = None
    job_id: str | None = None
    items: list[DecodedItem] = field(default_factory=list)
