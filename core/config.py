"""
配置文件 - 项目配置管理
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, Field, field_validator
from typing import Optional


class RedisSettings(BaseModel):
    url: Optional[str] = None
    namespace: str = "media-libraries"


class MediaLibrarySettings(BaseModel):
    # S3-compatible endpoint host; requests go to https://{account_id}.{storage_host}
    storage_host: str = "r2.cloudflarestorage.com"
    default_region: str = "auto"
    # ListObjectsV2 page size and page ceiling (policy, not a protocol limit)
    max_keys: int = 1000
    max_list_pages: int = 20
    # Transport
    timeout: float = 30.0
    max_retry_attempts: int = 2
    retry_delay: float = 0.5
    # Upper bound for any single retry wait, including a 429 Retry-After
    max_retry_delay: float = 4.0
    verify_ssl: bool = True
    # Byte ceiling for assets downloaded on selection
    max_download_bytes: int = 25 * 1024 * 1024
    # Remember API keys passed explicitly by callers
    remember_api_keys: bool = True


class Settings(BaseSettings):
    """项目配置"""

    # 基础配置
    PROJECT_NAME: str = Field(default="Media Libraries Service")
    VERSION: str = Field(default="1.0.0")
    DEBUG: bool = Field(default=False)
    ENVIRONMENT: str = Field(default="development")

    # CORS配置
    CORS_ORIGINS: list = Field(default=["http://localhost:3000", "http://localhost:8000"])

    # 分组配置：Redis / 媒体库 采用嵌套模型
    redis: RedisSettings = Field(default_factory=RedisSettings)
    media_library: MediaLibrarySettings = Field(default_factory=MediaLibrarySettings)

    # pydantic-settings v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="allow",
        env_nested_delimiter="__",
    )

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _parse_cors_origins(cls, v):
        """允许 JSON 字符串或逗号分隔字符串两种格式。"""
        if isinstance(v, list):
            return v
        if isinstance(v, str):
            s = v.strip()
            if s.startswith("["):
                import json
                return json.loads(s)
            if "," in s:
                return [item.strip() for item in s.split(",") if item.strip()]
            return [s]
        return v


settings = Settings()
