"""同步作业接口：提交作业（表单/multipart/原始请求体）、查询作业与执行作业。"""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import Response

from uws_sync.api.v1.schemas import JobDetailResponse
from uws_sync.application.container import get_content_decoder, get_job_manager, get_sync_dispatcher
from uws_sync.application.decoder import ContentDecoder
from uws_sync.application.dispatcher import SyncDispatcher
from uws_sync.application.manager import JobManager, describe_job
from uws_sync.config import get_settings
from uws_sync.domain.errors import ConfigurationError, FormatError, NotSupportedError, TransportError

settings = get_settings()
router = APIRouter(prefix=settings.job_list_path)
logger = logging.getLogger(__name__)


def _decoder() -> ContentDecoder:
    return get_content_decoder()


def _dispatcher() -> SyncDispatcher:
    return get_sync_dispatcher()


def _manager() -> JobManager:
    return get_job_manager()


def job_list_url(request: Request) -> str:
    """返回同步作业列表的绝对地址。"""
    return f"{str(request.base_url).rstrip('/')}{settings.api_prefix}{settings.job_list_path}"


async def _submit(
    request: Request,
    job_id: str | None,
    decoder: ContentDecoder,
    dispatcher: SyncDispatcher,
) -> Response:
    try:
        inputs = await decoder.decode(request, job_id=job_id)
        response = await asyncio.to_thread(dispatcher.dispatch, inputs, job_list_url(request))
    except FormatError as exc:
        logger.info("sync submit rejected: %s", exc, extra={"event": "sync.submit.rejected", "op": exc.field})
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except TransportError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except NotSupportedError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except ConfigurationError as exc:
        logger.error("sync submit misconfigured: %s", exc, extra={"event": "sync.submit.misconfigured"})
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc
    return response


@router.get("")
async def submit_job_query(
    request: Request,
    decoder: ContentDecoder = Depends(_decoder),
    dispatcher: SyncDispatcher = Depends(_dispatcher),
) -> Response:
    """通过查询串提交同步作业。"""
    return await _submit(request, None, decoder, dispatcher)


@router.post("")
async def submit_job(
    request: Request,
    decoder: ContentDecoder = Depends(_decoder),
    dispatcher: SyncDispatcher = Depends(_dispatcher),
) -> Response:
    """解析请求体并提交同步作业。"""
    return await _submit(request, None, decoder, dispatcher)


@router.post("/{job_id}")
async def submit_to_job(
    request: Request,
    job_id: str,
    decoder: ContentDecoder = Depends(_decoder),
    dispatcher: SyncDispatcher = Depends(_dispatcher),
) -> Response:
    """向已有作业路径提交不受支持，统一返回 400。"""
    return await _submit(request, job_id, decoder, dispatcher)


@router.get("/{job_id}", response_model=JobDetailResponse)
def get_job(
    request: Request,
    job_id: str,
    manager: JobManager = Depends(_manager),
) -> JobDetailResponse:
    """查询作业详情。"""
    try:
        job = manager.get(request.url.path, job_id)
    except KeyError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return JobDetailResponse.model_validate(describe_job(job))


@router.get("/{job_id}/run")
def run_job(
    request: Request,
    job_id: str,
    manager: JobManager = Depends(_manager),
) -> Response:
    """执行作业，作为 303 重定向的目标地址。"""
    logger.info("run_job requested: job_id=%s", job_id)
    try:
        job = manager.get(request.url.path, job_id)
        return manager.execute(request.url.path, job)
    except KeyError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
