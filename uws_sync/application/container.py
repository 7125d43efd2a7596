"""依赖容器模块，负责单例化创建仓储、解释器工厂与分发器对象。"""

from __future__ import annotations

from functools import lru_cache

from uws_sync.application.assembler import JobAssembler
from uws_sync.application.decoder import ContentDecoder
from uws_sync.application.dispatcher import SyncDispatcher
from uws_sync.application.manager import JobManager, PhaseJobRunner, SqlJobManager
from uws_sync.config import get_settings
from uws_sync.domain.interpreters.registry import ContentInterpreterRegistry, InterpreterFactory
from uws_sync.infra.db.repository import JobRepository
from uws_sync.infra.db.session import SessionLocal


@lru_cache(maxsize=1)
def get_interpreter_registry() -> ContentInterpreterRegistry:
    """获取内容解释器注册中心单例。"""
    return ContentInterpreterRegistry()


@lru_cache(maxsize=1)
def get_interpreter_factory() -> InterpreterFactory | None:
    """按配置解析内容解释器工厂；未配置时返回 None，未知键抛出 ConfigurationError。"""
    key = get_settings().inline_content_handler_key()
    if key is None:
        return None
    return get_interpreter_registry().resolve(key)


@lru_cache(maxsize=1)
def get_repository() -> JobRepository:
    """获取作业仓储单例。"""
    return JobRepository(SessionLocal)


@lru_cache(maxsize=1)
def get_job_manager() -> JobManager:
    """获取作业管理器单例。"""
    repository = get_repository()
    return SqlJobManager(repository, PhaseJobRunner(repository))


@lru_cache(maxsize=1)
def get_content_decoder() -> ContentDecoder:
    """获取请求内容解码器单例。"""
    return ContentDecoder(get_interpreter_factory())


@lru_cache(maxsize=1)
def get_sync_dispatcher() -> SyncDispatcher:
    """获取同步提交分发器单例。"""
    return SyncDispatcher(
        assembler=JobAssembler(),
        job_manager=get_job_manager(),
        exec_on_post=get_settings().exec_on_post,
    )


def shutdown_container_resources() -> None:
    """清理依赖容器缓存，确保后续可重新构建全新实例。"""
    for provider in (
        get_sync_dispatcher,
        get_content_decoder,
        get_job_manager,
        get_repository,
        get_interpreter_factory,
        get_interpreter_registry,
    ):
        provider.cache_clear()
