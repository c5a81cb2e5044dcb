"""Media library registry.

Maps service ids to ``MediaLibraryService`` descriptors. Built-in providers
are imported and registered lazily on first lookup.
"""
import importlib
from typing import Awaitable, Callable, Optional

from application.ports.media_library import MediaLibraryService, ServiceType
from core.logging_config import get_logger
from domain.media_library.exceptions import MediaLibraryNotFoundError

logger = get_logger(__name__)

# Service builder type
ServiceBuilder = Callable[[], Awaitable[MediaLibraryService]]

# Global registry for media library services
_service_registry: dict[str, MediaLibraryService] = {}

# service_id -> (module path, builder name)
_BUILTIN_SERVICES: dict[str, tuple[str, str]] = {
    "r2": ("infrastructure.external.media_libraries.providers.r2", "build_default_r2_service"),
}


def register_service(service: MediaLibraryService) -> None:
    """Register (or replace) a media library service.

    Args:
        service: Service descriptor; its ``service_id`` is the registry key
    """
    _service_registry[service.service_id] = service
    logger.info(
        "media_library_registered",
        service_id=service.service_id,
        service_type=service.service_type.value,
    )


def unregister_service(service_id: str) -> Optional[MediaLibraryService]:
    return _service_registry.pop(service_id, None)


async def get_service(service_id: str) -> MediaLibraryService:
    """Look up a service, registering built-ins on demand.

    Raises:
        MediaLibraryNotFoundError: If no service is registered under ``service_id``
    """
    if service_id not in _service_registry:
        await _auto_register_services()
        if service_id not in _service_registry:
            raise MediaLibraryNotFoundError(service_id)
    return _service_registry[service_id]


async def all_services(service_type: Optional[ServiceType] = None) -> list[MediaLibraryService]:
    await _auto_register_services()
    services = list(_service_registry.values())
    if service_type is not None:
        services = [s for s in services if s.service_type == service_type]
    return services


async def all_cloud_storage_services() -> list[MediaLibraryService]:
    return await all_services(ServiceType.CLOUD_STORAGE)


async def all_stock_asset_providers() -> list[MediaLibraryService]:
    return await all_services(ServiceType.STOCK_ASSETS)


async def _auto_register_services() -> None:
    """Auto-register built-in media library services."""
    for service_id, (module_path, builder_name) in _BUILTIN_SERVICES.items():
        if service_id in _service_registry:
            continue

        try:
            module = importlib.import_module(module_path)
            builder: ServiceBuilder = getattr(module, builder_name)
        except (ImportError, AttributeError) as e:
            logger.debug("media_library_unavailable", service_id=service_id, error=str(e))
            continue
        register_service(await builder())


async def close_all_services() -> None:
    """Release provider resources (HTTP clients) and clear the registry."""
    for service in list(_service_registry.values()):
        if service.close is None:
            continue
        try:
            await service.close()
        except Exception as e:
            logger.warning("media_library_close_failed", service_id=service.service_id, error=str(e))
    _service_registry.clear()


class MediaLibraryRegistry:
    """``MediaLibraryCatalog`` view over the module-level registry."""

    async def get_service(self, service_id: str) -> MediaLibraryService:
        return await get_service(service_id)

    async def all_services(
        self, service_type: Optional[ServiceType] = None
    ) -> list[MediaLibraryService]:
        return await all_services(service_type)
