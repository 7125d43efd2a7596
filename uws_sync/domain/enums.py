"""领域枚举定义：统一作业执行阶段与保留作业属性取值。"""

from __future__ import annotations

from enum import Enum


class ExecutionPhase(str, Enum):
    """UWS 作业执行阶段枚举。"""
    pending = "PENDING"
    queued = "QUEUED"
    executing = "EXECUTING"
    completed = "COMPLETED"
    error = "ERROR"
    aborted = "ABORTED"
    unknown = "UNKNOWN"
    held = "HELD"
    suspended = "SUSPENDED"
    archived = "ARCHIVED"


class ReservedAttribute(str, Enum):
    """协议保留的作业控制属性，名称大小写不敏感。"""
    run_id = "RUNID"
    destruction_time = "DESTRUCTION"
    execution_duration = "EXECUTIONDURATION"
    quote = "QUOTE"

    @property
    def attribute_name(self) -> str:
        return self.value
