"""领域异常定义：区分格式错误、传输错误、不支持的操作与配置错误。"""

from __future__ import annotations


class UwsError(Exception):
    """作业提交处理的基础异常。"""


class FormatError(UwsError, ValueError):
    """保留属性取值格式非法，整个请求应按客户端错误拒绝。"""

    def __init__(self, field: str, value: str, reason: str) -> None:
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"invalid {field}: {value!r} ({reason})")


class TransportError(UwsError):
    """请求体读取失败或 multipart 分段格式损坏。"""


class NotSupportedError(UwsError):
    """请求形态不受支持，例如向已存在作业路径提交。"""


class ConfigurationError(UwsError):
    """内容解释器等可插拔组件无法按配置解析。"""


class JobNotFoundError(UwsError, KeyError):
    """作业不存在。"""

    def __init__(self, job_id: str) -> None:
        self.job_id = job_id
        super().__init__(f"job not found: {job_id}")

    def __str__(self) -> str:
        return f"job not found: {self.job_id}"
