"""API 总路由配置，注册同步作业子路由。"""

from __future__ import annotations

from fastapi import APIRouter

from uws_sync.api.v1.sync import router as sync_router
from uws_sync.config import get_settings

settings = get_settings()

api_router = APIRouter(prefix=settings.api_prefix)
api_router.include_router(sync_router, tags=["sync"])
