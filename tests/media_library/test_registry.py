import re

import pytest
import pytest_asyncio

from application.ports.media_library import AuthType, MediaLibraryService, ServiceType
from domain.media_library.exceptions import MediaLibraryNotFoundError
from infrastructure.external.media_libraries import registry
from infrastructure.external.media_libraries.providers.r2 import R2_API_KEY_PATTERN


async def _no_results(query, options):
    return []


def _stock_service(service_id="stock_demo") -> MediaLibraryService:
    return MediaLibraryService(
        service_type=ServiceType.STOCK_ASSETS,
        service_id=service_id,
        service_label="Stock Demo",
        auth_type=AuthType.API_KEY,
        hotlinking=True,
        search=_no_results,
        api_key_pattern=re.compile(r"[a-z0-9]{8}"),
    )


@pytest_asyncio.fixture
async def clean_registry():
    yield
    await registry.close_all_services()


@pytest.mark.asyncio
@pytest.mark.usefixtures("clean_registry")
async def test_builtin_r2_is_registered_lazily():
    service = await registry.get_service("r2")
    assert service.service_type == ServiceType.CLOUD_STORAGE
    assert service.auth_type == AuthType.API_KEY
    assert service.hotlinking is False
    assert service.supports_upload
    assert await service.init() is True


@pytest.mark.asyncio
@pytest.mark.usefixtures("clean_registry")
async def test_unknown_service_raises_not_found():
    with pytest.raises(MediaLibraryNotFoundError) as exc_info:
        await registry.get_service("nope")
    assert exc_info.value.details == {"service_id": "nope"}


@pytest.mark.asyncio
@pytest.mark.usefixtures("clean_registry")
async def test_filters_by_service_type():
    registry.register_service(_stock_service())

    stock = await registry.all_stock_asset_providers()
    cloud = await registry.all_cloud_storage_services()

    assert [s.service_id for s in stock] == ["stock_demo"]
    assert [s.service_id for s in cloud] == ["r2"]


@pytest.mark.asyncio
@pytest.mark.usefixtures("clean_registry")
async def test_unregister():
    registry.register_service(_stock_service("temp"))
    assert registry.unregister_service("temp").service_id == "temp"
    assert registry.unregister_service("temp") is None


def test_cloud_storage_requires_init():
    with pytest.raises(ValueError):
        MediaLibraryService(
            service_type=ServiceType.CLOUD_STORAGE,
            service_id="bucket",
            service_label="Bucket",
            auth_type=AuthType.API_KEY,
            hotlinking=False,
            search=_no_results,
        )


def test_stock_providers_may_omit_init():
    service = _stock_service()
    assert service.init is None
    assert service.supports_upload is False
    assert service.accepts_api_key("abcd1234")
    assert not service.accepts_api_key("abcd1234-extra")


@pytest.mark.parametrize(
    "api_key, accepted",
    [
        ("acc:key:secret:bucket", True),
        ("acc:key:secret:bucket:auto", True),
        ("acc:key:secret:bucket::https://cdn.example.com", True),
        ("acc:key:secret", False),
        ("acc::secret:bucket", False),
        ("evil.example/x:key:secret:bucket", False),
        ("acc:key:secret:bucket/../other", False),
    ],
)
def test_r2_api_key_pattern(api_key, accepted):
    assert bool(R2_API_KEY_PATTERN.fullmatch(api_key)) is accepted
