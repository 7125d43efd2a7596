"""全局配置加载模块：从环境变量构建运行参数并提供缓存访问。"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _csv_to_list(value: str) -> list[str]:
    """将逗号分隔字符串转换为去空白列表。"""
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """系统运行配置对象，从环境变量读取并提供类型化访问。"""
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "UWS Sync Gateway"
    api_prefix: str = "/api/v1"

    # 同步作业列表挂载点，重定向地址为 <job_list_url>/<job_id>/run。
    job_list_path: str = "/sync"
    exec_on_post: bool = False
    inline_content_handler: str = ""

    database_url: str = "sqlite:///./uws_sync.db"

    log_dir: Path = Field(default=Path("./logs"))
    log_level: str = "INFO"
    log_debug_modules: str = ""
    log_redaction_mode: str = "basic"
    log_max_bytes: int = 20 * 1024 * 1024
    log_backup_count: int = 5

    def log_debug_modules_list(self) -> list[str]:
        return _csv_to_list(self.log_debug_modules)

    def inline_content_handler_key(self) -> str | None:
        key = self.inline_content_handler.strip()
        return key or None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """构建并缓存 Settings。"""
    return Settings()
