"""作业管理器测试：验证持久化顺序、阶段流转以及 303 后的执行闭环。"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from uws_sync.api.router import api_router
from uws_sync.api.v1 import sync as sync_api
from uws_sync.application.assembler import JobAssembler
from uws_sync.application.decoder import ContentDecoder
from uws_sync.application.dispatcher import SyncDispatcher
from uws_sync.application.manager import PhaseJobRunner, SqlJobManager
from uws_sync.domain.enums import ExecutionPhase
from uws_sync.domain.errors import JobNotFoundError
from uws_sync.domain.models import Job, JobInfo, Parameter
from uws_sync.infra.db.models import Base
from uws_sync.infra.db.repository import JobRepository


def _manager(tmp_path: Path) -> SqlJobManager:
    engine = create_engine(f"sqlite:///{tmp_path / 'jobs.db'}", future=True)
    session_factory = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False, class_=Session)
    Base.metadata.create_all(bind=engine)
    repository = JobRepository(session_factory)
    return SqlJobManager(repository, PhaseJobRunner(repository))


def test_create_assigns_id_and_keeps_parameter_order(tmp_path: Path) -> None:
    manager = _manager(tmp_path)
    job = Job(
        run_id="r1",
        destruction_time=datetime(2030, 1, 1, tzinfo=timezone.utc),
        execution_duration=60,
        parameters=[Parameter("b", "1"), Parameter("a", "2"), Parameter("b", "3")],
        job_info=JobInfo(content="<x/>", content_type="text/xml"),
        request_path="/api/v1/sync",
        remote_ip="127.0.0.1",
    )

    created = manager.create("/api/v1/sync", job)
    loaded = manager.get("/api/v1/sync", created.job_id)

    assert created.job_id
    assert loaded.phase is ExecutionPhase.pending
    assert loaded.run_id == "r1"
    assert loaded.destruction_time == datetime(2030, 1, 1, tzinfo=timezone.utc)
    assert loaded.execution_duration == 60
    assert [(p.name, p.value) for p in loaded.parameters] == [("b", "1"), ("a", "2"), ("b", "3")]
    assert loaded.job_info == JobInfo(content="<x/>", content_type="text/xml")


def test_get_unknown_job_raises(tmp_path: Path) -> None:
    manager = _manager(tmp_path)
    with pytest.raises(JobNotFoundError):
        manager.get("/api/v1/sync", "missing")


def test_execute_completes_job_once(tmp_path: Path) -> None:
    manager = _manager(tmp_path)
    created = manager.create("/api/v1/sync", Job(parameters=[Parameter("foo", "bar")]))

    response = manager.execute("/api/v1/sync", created)
    payload = json.loads(response.body)

    assert response.status_code == 200
    assert payload["job_id"] == created.job_id
    assert payload["phase"] == "COMPLETED"
    assert payload["parameters"] == [{"name": "foo", "value": "bar"}]

    with pytest.raises(ValueError):
        manager.execute("/api/v1/sync", manager.get("/api/v1/sync", created.job_id))


def test_redirect_target_runs_stored_job(tmp_path: Path) -> None:
    """提交后跟随 303 到 /run，应执行已持久化的作业。"""
    manager = _manager(tmp_path)
    app = FastAPI()
    app.include_router(api_router)
    decoder = ContentDecoder(None)
    dispatcher = SyncDispatcher(assembler=JobAssembler(), job_manager=manager, exec_on_post=False)
    app.dependency_overrides[sync_api._decoder] = lambda: decoder
    app.dependency_overrides[sync_api._dispatcher] = lambda: dispatcher
    app.dependency_overrides[sync_api._manager] = lambda: manager
    client = TestClient(app)

    submitted = client.post(
        "/api/v1/sync",
        data={"RUNID": "abc", "QUOTE": "2030-01-01T00:00:00.000", "foo": "bar"},
        follow_redirects=False,
    )
    assert submitted.status_code == 303
    job_id = submitted.headers["location"].rsplit("/", 2)[-2]

    detail = client.get(f"/api/v1/sync/{job_id}")
    assert detail.status_code == 200
    assert detail.json()["phase"] == "PENDING"
    assert detail.json()["quote"] == "2030-01-01T00:00:00.000"

    ran = client.get(submitted.headers["location"])
    assert ran.status_code == 200
    assert ran.json()["phase"] == "COMPLETED"
    assert ran.json()["run_id"] == "abc"

    assert client.get(submitted.headers["location"]).status_code == 409
