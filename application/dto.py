"""
数据传输对象（DTO）- 应用层与表现层之间的数据传输
"""
from pydantic import BaseModel, Field, model_serializer, ConfigDict
from typing import Optional, Any
from datetime import datetime, timezone

from domain.media_library import AssetKind


class DTOBase(BaseModel):
    """Base DTO: unify datetime serialization to UTC-Z for all subclasses."""

    @model_serializer(mode="wrap")
    def _serialize_model(self, handler):  # type: ignore[override]
        data = handler(self)

        def convert(value):
            if isinstance(value, datetime):
                ts = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
                s = ts.astimezone(timezone.utc).isoformat()
                return s.replace("+00:00", "Z")
            if isinstance(value, list):
                return [convert(v) for v in value]
            if isinstance(value, tuple):
                return tuple(convert(v) for v in value)
            if isinstance(value, dict):
                return {k: convert(v) for k, v in value.items()}
            return value

        return convert(data)


class ExternalAssetDTO(DTOBase):
    """外部媒体库资源DTO"""
    id: str
    description: str = ""
    preview_url: str = ""
    download_url: str
    file_name: str
    kind: AssetKind = AssetKind.OTHER
    last_modified: Optional[datetime] = None
    size: int = 0

    model_config = ConfigDict(from_attributes=True)


class MediaLibraryServiceDTO(DTOBase):
    """媒体库服务描述DTO（不含可调用对象）"""
    service_type: str
    service_id: str
    service_label: str
    auth_type: str
    hotlinking: bool
    supports_upload: bool
    service_url: Optional[str] = None
    show_service_link: bool = False
    developer_url: Optional[str] = None
    api_key_url: Optional[str] = None
    api_key_pattern: Optional[str] = None
    api_key_help: Optional[str] = None


class LibrarySettingsDTO(DTOBase):
    """媒体库设置（与 camelCase 键兼容）"""
    public_path: Optional[bool] = Field(None, alias="publicPath")
    custom_domain: Optional[str] = Field(None, alias="customDomain")
    path_prefix: Optional[str] = Field(None, alias="pathPrefix")

    model_config = ConfigDict(populate_by_name=True)

    def to_settings(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class SearchRequestDTO(DTOBase):
    """搜索请求DTO"""
    query: str = Field("", max_length=500, description="文件名关键字（不区分大小写）")
    kind: Optional[str] = Field(None, description="资源类型过滤（由提供方解释）")
    api_key: Optional[str] = Field(None, description="API key；为空时使用已记住的 key")
    user_name: Optional[str] = None
    password: Optional[str] = None
    settings: Optional[LibrarySettingsDTO] = None
    remember: bool = Field(True, description="是否记住显式提供的凭据")


class SelectRequestDTO(DTOBase):
    """资源选择请求DTO；非热链资源需要凭据以确认资源来源"""
    asset: ExternalAssetDTO
    api_key: Optional[str] = Field(None, description="API key；为空时使用已记住的 key")
    settings: Optional[LibrarySettingsDTO] = None
    remember: bool = True


class SelectedAssetDTO(DTOBase):
    """资源选择结果：hotlinking 返回 URL，否则返回下载内容（base64）"""
    asset: ExternalAssetDTO
    hotlinked: bool
    url: Optional[str] = None
    data: Optional[str] = None
    content_type: Optional[str] = None
    size: Optional[int] = None


class DefaultMediaLibraryOptionsDTO(DTOBase):
    """默认媒体库选项；max_file_size 为 None 表示不限制"""
    max_file_size: Optional[int] = None
    transformations: Optional[dict[str, Any]] = None


class StockAssetMediaLibraryOptionsDTO(DTOBase):
    providers: list[str] = Field(default_factory=list)


class MessageDTO(DTOBase):
    """消息响应DTO"""
    message: str
    detail: Optional[str] = None
