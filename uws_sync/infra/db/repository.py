"""仓储实现：封装作业及其有序参数的持久化与阶段流转。"""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy.orm import Session, sessionmaker

from uws_sync.domain.enums import ExecutionPhase
from uws_sync.domain.errors import JobNotFoundError
from uws_sync.domain.models import Job, JobInfo, Parameter
from uws_sync.infra.db.models import JobORM, JobParameterORM, utcnow


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite 不保存时区，读回时按 UTC 还原。
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def to_domain(row: JobORM) -> Job:
    """将 ORM 行转换为领域作业对象。"""
    job_info = None
    if row.job_info_content is not None:
        job_info = JobInfo(content=row.job_info_content, content_type=row.job_info_content_type)
    return Job(
        job_id=row.id,
        phase=ExecutionPhase(row.phase),
        run_id=row.run_id,
        destruction_time=_as_utc(row.destruction_time),
        execution_duration=row.execution_duration,
        quote=_as_utc(row.quote),
        parameters=[Parameter(item.name, item.value) for item in row.parameters],
        job_info=job_info,
        request_path=row.request_path,
        remote_ip=row.remote_ip,
        created_at=_as_utc(row.created_at),
    )


class JobRepository:
    """作业仓储实现，封装数据库读写与阶段流转。"""
    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def create_job(self, job: Job) -> Job:
        """在一个事务内写入作业与参数，返回带有新标识的作业。"""
        job_id = uuid4().hex
        with self._session_factory.begin() as db:
            row = JobORM(
                id=job_id,
                phase=job.phase.value,
                run_id=job.run_id,
                destruction_time=job.destruction_time,
                execution_duration=job.execution_duration,
                quote=job.quote,
                job_info_content=job.job_info.content if job.job_info else None,
                job_info_content_type=job.job_info.content_type if job.job_info else None,
                request_path=job.request_path,
                remote_ip=job.remote_ip,
            )
            row.parameters = [
                JobParameterORM(position=index, name=param.name, value=param.value)
                for index, param in enumerate(job.parameters)
            ]
            db.add(row)
            db.flush()
            return to_domain(row)

    def get_job(self, job_id: str) -> Job | None:
        """按主键查询作业。"""
        with self._session_factory() as db:
            row = db.get(JobORM, job_id)
            return to_domain(row) if row is not None else None

    def set_phase(self, job_id: str, phase: ExecutionPhase) -> Job:
        """更新作业执行阶段并返回最新作业。"""
        with self._session_factory.begin() as db:
            row = db.get(JobORM, job_id)
            if row is None:
                raise JobNotFoundError(job_id)
            row.phase = phase.value
            row.updated_at = utcnow()
            db.add(row)
            db.flush()
            return to_domain(row)
