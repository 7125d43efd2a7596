"""作业管理器：定义创建/查询/执行接口，并提供基于 SQLAlchemy 的参考实现。"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from fastapi.responses import JSONResponse, Response

from uws_sync.domain.dates import format_ivoa_date
from uws_sync.domain.enums import ExecutionPhase
from uws_sync.domain.errors import JobNotFoundError
from uws_sync.domain.models import Job
from uws_sync.infra.db.repository import JobRepository
from uws_sync.infra.logging.context import bind_log_context

logger = logging.getLogger(__name__)


def describe_job(job: Job) -> dict[str, Any]:
    """返回作业的 JSON 友好描述，时间字段使用 IVOA 格式。"""
    return {
        "job_id": job.job_id,
        "phase": job.phase.value,
        "run_id": job.run_id,
        "destruction_time": format_ivoa_date(job.destruction_time) if job.destruction_time else None,
        "execution_duration": job.execution_duration,
        "quote": format_ivoa_date(job.quote) if job.quote else None,
        "parameters": [{"name": param.name, "value": param.value} for param in job.parameters],
        "job_info": (
            {"content": job.job_info.content, "content_type": job.job_info.content_type}
            if job.job_info
            else None
        ),
        "request_path": job.request_path,
        "remote_ip": job.remote_ip,
    }


class JobManager(Protocol):
    """外部作业管理器接口：负责持久化、分配标识与执行。"""

    def create(self, request_path: str, job: Job) -> Job: ...

    def get(self, request_path: str, job_id: str) -> Job: ...

    def execute(self, request_path: str, job: Job) -> Response: ...


class JobRunner(Protocol):
    """执行已持久化作业并生成响应。"""

    def run(self, job: Job) -> Response: ...


class PhaseJobRunner:
    """仅推进执行阶段的运行器，按 PENDING -> EXECUTING -> COMPLETED 流转。"""
    def __init__(self, repository: JobRepository) -> None:
        self._repository = repository

    def run(self, job: Job) -> Response:
        if job.job_id is None:
            raise ValueError("job must be persisted before execution")
        if job.phase not in {ExecutionPhase.pending, ExecutionPhase.queued}:
            raise ValueError(f"job cannot be executed from phase={job.phase.value}")
        for phase in (ExecutionPhase.executing, ExecutionPhase.completed):
            finished = self._repository.set_phase(job.job_id, phase)
            logger.debug("job phase changed", extra={"event": "job.phase.changed", "phase": phase.value})
        return JSONResponse(content=describe_job(finished))


class SqlJobManager:
    """基于仓储的作业管理器参考实现。"""
    def __init__(self, repository: JobRepository, runner: JobRunner) -> None:
        self._repository = repository
        self._runner = runner

    def create(self, request_path: str, job: Job) -> Job:
        created = self._repository.create_job(job)
        logger.info(
            "job created: job_id=%s params=%s",
            created.job_id,
            len(created.parameters),
            extra={"event": "job.created", "job_id": created.job_id, "op": request_path},
        )
        return created

    def get(self, request_path: str, job_id: str) -> Job:
        job = self._repository.get_job(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    def execute(self, request_path: str, job: Job) -> Response:
        with bind_log_context(job_id=job.job_id):
            logger.info("job execution started", extra={"event": "job.execute.started", "op": request_path})
            response = self._runner.run(job)
            logger.info(
                "job execution finished",
                extra={"event": "job.execute.succeeded", "status_code": response.status_code},
            )
            return response
