"""外部媒体库（云存储 / 图库）相关路由。"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from api.dependencies import get_media_library_service
from application.dto import (
    ExternalAssetDTO,
    MediaLibraryServiceDTO,
    SearchRequestDTO,
    SelectRequestDTO,
    SelectedAssetDTO,
)
from application.ports.media_library import ServiceType
from application.services.media_library_service import MediaLibraryApplicationService
from core.response import (
    Response as ApiResponse,
    success_response,
)
from domain.media_library import MediaFile


router = APIRouter(
    prefix="/media-libraries",
    tags=["媒体库"],
)


@router.get(
    "/health",
    summary="媒体库模块存活检查",
    response_model=ApiResponse[dict],
)
async def media_libraries_health():
    return success_response(data={"status": "healthy"})


@router.get(
    "/",
    summary="列出可用媒体库",
    response_model=ApiResponse[list[MediaLibraryServiceDTO]],
)
async def list_media_libraries(
    service_type: Optional[ServiceType] = Query(None, description="按服务类型过滤"),
    service: MediaLibraryApplicationService = Depends(get_media_library_service),
):
    services = await service.list_services(service_type)
    return success_response(data=services)


@router.post(
    "/{service_id}/search",
    summary="搜索媒体库资源",
    response_model=ApiResponse[list[ExternalAssetDTO]],
)
async def search_media_library(
    service_id: str,
    payload: SearchRequestDTO,
    service: MediaLibraryApplicationService = Depends(get_media_library_service),
):
    assets = await service.search(
        service_id,
        payload.query,
        kind=payload.kind,
        api_key=payload.api_key,
        user_name=payload.user_name,
        password=payload.password,
        settings=payload.settings.to_settings() if payload.settings else None,
        remember=payload.remember,
    )
    return success_response(data=assets, message=f"Found {len(assets)} assets")


@router.post(
    "/{service_id}/upload",
    summary="上传文件到媒体库",
    response_model=ApiResponse[list[ExternalAssetDTO]],
)
async def upload_to_media_library(
    service_id: str,
    files: list[UploadFile] = File(..., description="待上传文件"),
    api_key: Optional[str] = Form(None),
    path_prefix: Optional[str] = Form(None),
    custom_domain: Optional[str] = Form(None),
    public_path: Optional[bool] = Form(None),
    remember: bool = Form(True),
    service: MediaLibraryApplicationService = Depends(get_media_library_service),
):
    media_files = [
        MediaFile(
            name=upload.filename or "file",
            data=await upload.read(),
            content_type=upload.content_type or "",
        )
        for upload in files
    ]
    settings = {
        key: value
        for key, value in {
            "path_prefix": path_prefix,
            "custom_domain": custom_domain,
            "public_path": public_path,
        }.items()
        if value is not None
    }
    assets = await service.upload(
        service_id,
        media_files,
        api_key=api_key,
        settings=settings,
        remember=remember,
    )
    return success_response(data=assets, message=f"Uploaded {len(assets)} files")


@router.post(
    "/{service_id}/select",
    summary="选择资源（热链返回URL，否则返回文件内容）",
    response_model=ApiResponse[SelectedAssetDTO],
)
async def select_media_library_asset(
    service_id: str,
    payload: SelectRequestDTO,
    service: MediaLibraryApplicationService = Depends(get_media_library_service),
):
    selected = await service.select_asset(
        service_id,
        payload.asset,
        api_key=payload.api_key,
        settings=payload.settings.to_settings() if payload.settings else None,
        remember=payload.remember,
    )
    return success_response(data=selected)
