"""数据库 ORM 模型定义：作业与有序参数表结构。"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """SQLAlchemy 声明式基类。"""
    pass


class JobORM(Base):
    """作业主表 ORM 模型。"""
    __tablename__ = "jobs"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    phase: Mapped[str] = mapped_column(String(16), index=True)
    run_id: Mapped[str | None] = mapped_column(Text(), nullable=True)
    destruction_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    execution_duration: Mapped[int | None] = mapped_column(Integer, nullable=True)
    quote: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    job_info_content: Mapped[str | None] = mapped_column(Text(), nullable=True)
    job_info_content_type: Mapped[str | None] = mapped_column(String(128), nullable=True)
    request_path: Mapped[str | None] = mapped_column(Text(), nullable=True)
    remote_ip: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    parameters: Mapped[list[JobParameterORM]] = relationship(
        back_populates="job",
        order_by="JobParameterORM.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class JobParameterORM(Base):
    """作业参数表 ORM 模型，position 保留请求中的出现顺序。"""
    __tablename__ = "job_parameters"
    __table_args__ = (UniqueConstraint("job_id", "position", name="uq_job_parameter_position"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    job_id: Mapped[str] = mapped_column(ForeignKey("jobs.id", ondelete="CASCADE"), index=True)
    position: Mapped[int] = mapped_column(Integer)
    name: Mapped[str] = mapped_column(String(256))
    value: Mapped[str] = mapped_column(Text())

    job: Mapped[JobORM] = relationship(back_populates="parameters")
