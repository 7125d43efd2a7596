"""日志初始化：作业提交链路的 JSON 行日志，经队列异步落盘。"""

from __future__ import annotations

import json
import logging
import re
import sys
from datetime import datetime, timezone
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler
from pathlib import Path
from queue import SimpleQueue

from uws_sync.config import Settings
from uws_sync.infra.logging.context import get_log_context

SERVICE_NAME = "uws-sync"
LOG_FILE_NAME = "uws-sync.jsonl"

# 通过 extra= 传入、需要原样输出的业务字段。
_EXTRA_FIELDS = ("event", "op", "phase", "duration_ms", "status_code", "error_type")

# 作业参数可能携带凭据，写盘前按键名掩码。
_CREDENTIAL_RE = re.compile(r"(?i)\b(authorization\s*[:=]\s*bearer|password|passwd|token|secret)(\s*[:=]\s*)[^\s,;&]+")

_listener: QueueListener | None = None


def redact_text(value: str | None, mode: str) -> str | None:
    """mode 为 off 时原样返回，否则掩码凭据类键值。"""
    if value is None or mode.lower() == "off":
        return value
    return _CREDENTIAL_RE.sub(r"\1\2***", value)


class DebugRoutingFilter(logging.Filter):
    """低于配置级别的记录一律丢弃，仅白名单模块的 DEBUG 例外。"""

    def __init__(self, *, min_level: int, debug_modules: set[str]) -> None:
        super().__init__()
        self._min_level = min_level
        self._prefixes = tuple(f"{item}." for item in debug_modules)
        self._debug_modules = debug_modules

    def filter(self, record: logging.LogRecord) -> bool:
        if record.levelno >= self._min_level:
            return True
        return record.levelno == logging.DEBUG and (
            record.name in self._debug_modules or record.name.startswith(self._prefixes)
        )


class ContextInjectionFilter(logging.Filter):
    """入队前把 request_id/job_id 固化到 record，监听线程读不到 contextvars。"""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in get_log_context().items():
            if value is not None and getattr(record, key, None) is None:
                setattr(record, key, value)
        return True


class StructuredJsonFormatter(logging.Formatter):
    def __init__(self, *, service: str, redaction_mode: str) -> None:
        super().__init__()
        self._service = service
        self._redaction_mode = redaction_mode

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry: dict[str, object] = {
            "ts": created.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "service": self._service,
            "module": record.name,
            "request_id": getattr(record, "request_id", None),
            "job_id": getattr(record, "job_id", None),
        }
        if entry["request_id"] is None and entry["job_id"] is None:
            # 未经过队列过滤器的记录（如测试中直接格式化）从当前上下文补齐。
            entry.update(get_log_context())
        for field in _EXTRA_FIELDS:
            entry[field] = getattr(record, field, None)
        entry["message"] = redact_text(record.getMessage(), self._redaction_mode)
        error = getattr(record, "error", None)
        if error is None and record.exc_info:
            error = self.formatException(record.exc_info)
        entry["error"] = redact_text(str(error), self._redaction_mode) if error is not None else None
        return json.dumps(entry, ensure_ascii=False, default=str)


def _parse_level(level_text: str) -> int:
    level = logging.getLevelName(level_text.strip().upper())
    return level if isinstance(level, int) else logging.INFO


def _resolve_log_file(log_dir: Path) -> Path:
    root = log_dir if log_dir.is_absolute() else (Path.cwd() / log_dir).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root / LOG_FILE_NAME


def configure_logging(settings: Settings) -> Path:
    """根 logger 只挂一个 QueueHandler；文件与 stderr(仅 ERROR) 在监听线程中写出。"""
    global _listener
    shutdown_logging()
    log_file = _resolve_log_file(settings.log_dir)

    queue_obj: SimpleQueue[logging.LogRecord] = SimpleQueue()
    queue_handler = QueueHandler(queue_obj)
    queue_handler.addFilter(ContextInjectionFilter())
    queue_handler.addFilter(
        DebugRoutingFilter(
            min_level=_parse_level(settings.log_level),
            debug_modules=set(settings.log_debug_modules_list()),
        )
    )
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
    root_logger.addHandler(queue_handler)
    root_logger.setLevel(logging.DEBUG)

    formatter = StructuredJsonFormatter(service=SERVICE_NAME, redaction_mode=settings.log_redaction_mode)
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=settings.log_max_bytes,
        backupCount=settings.log_backup_count,
        encoding="utf-8",
    )
    file_handler.setFormatter(formatter)
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.ERROR)
    stderr_handler.setFormatter(formatter)

    _listener = QueueListener(queue_obj, file_handler, stderr_handler, respect_handler_level=True)
    _listener.start()

    for noisy in ("uvicorn.access", "python_multipart", "sqlalchemy.engine"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
    return log_file


def shutdown_logging() -> None:
    """停止队列监听器并关闭底层句柄，可重复调用。"""
    global _listener
    listener, _listener = _listener, None
    if listener is None:
        return
    listener.stop()
    for handler in listener.handlers:
        handler.close()
