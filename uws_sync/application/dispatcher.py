"""同步提交分发器：创建作业后立即执行，或 303 重定向到作业运行地址。"""

from __future__ import annotations

import logging

from fastapi import status
from fastapi.responses import RedirectResponse, Response

from uws_sync.application.assembler import JobAssembler
from uws_sync.application.manager import JobManager
from uws_sync.domain.errors import NotSupportedError
from uws_sync.domain.models import NormalizedInput
from uws_sync.infra.logging.context import bind_log_context

PRG_TOKEN = "run"

logger = logging.getLogger(__name__)


class SyncDispatcher:
    """每个请求触发一次：create 之后选择 execute 或 303，无重试。"""
    def __init__(self, *, assembler: JobAssembler, job_manager: JobManager, exec_on_post: bool) -> None:
        self._assembler = assembler
        self._job_manager = job_manager
        self._exec_on_post = exec_on_post

    def dispatch(self, inputs: NormalizedInput, job_list_url: str) -> Response:
        """组装并创建作业；作业管理器抛出的异常原样向上传播。"""
        if inputs.job_id is not None:
            raise NotSupportedError(f"POST to sync job creation with extra path elements: {inputs.job_id}")

        job = self._assembler.build(inputs)
        created = self._job_manager.create(inputs.request_path, job)
        with bind_log_context(job_id=created.job_id):
            if self._exec_on_post:
                logger.info("sync job executing inline", extra={"event": "sync.dispatch.execute"})
                return self._job_manager.execute(inputs.request_path, created)

            redirect_url = f"{job_list_url.rstrip('/')}/{created.job_id}/{PRG_TOKEN}"
            logger.debug("redirect: %s", redirect_url)
            logger.info("sync job redirected", extra={"event": "sync.dispatch.redirect"})
            return RedirectResponse(url=redirect_url, status_code=status.HTTP_303_SEE_OTHER)
