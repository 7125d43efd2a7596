"""API 响应数据模型定义，约束作业描述与错误返回结构。"""

from __future__ import annotations

from pydantic import BaseModel


class ParameterItem(BaseModel):
    """作业参数条目响应模型。"""
    name: str
    value: str


class JobInfoItem(BaseModel):
    content: str
    content_type: str | None


class JobDetailResponse(BaseModel):
    """作业详情接口响应模型，时间字段为 IVOA 格式字符串。"""
    job_id: str
    phase: str
    run_id: str | None
    destruction_time: str | None
    execution_duration: int | None
    quote: str | None
    parameters: list[ParameterItem]
    job_info: JobInfoItem | None
    request_path: str | None
    remote_ip: str | None
