"""Media library option resolution.

Options can be given per field or site-wide, each in the current
``media_libraries: {name: {...}}`` form or the legacy single
``media_library: {name: ..., ...}`` form.
"""
from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

from application.dto import DefaultMediaLibraryOptionsDTO, StockAssetMediaLibraryOptionsDTO

DEFAULT_LIBRARY = "default"
STOCK_ASSETS_LIBRARY = "stock_assets"


def _named(config: Optional[Mapping[str, Any]], key: str) -> Any:
    if not isinstance(config, Mapping):
        return None
    return config.get(key)


def _legacy_name(config: Optional[Mapping[str, Any]]) -> Any:
    legacy = _named(config, "media_library")
    return legacy.get("name") if isinstance(legacy, Mapping) else None


def get_media_library_options(
    library_name: str = DEFAULT_LIBRARY,
    field_config: Optional[Mapping[str, Any]] = None,
    site_config: Optional[Mapping[str, Any]] = None,
) -> Any:
    """Return the raw options for ``library_name``; ``{}`` when none are set.

    Precedence: field ``media_libraries`` > legacy field ``media_library`` >
    site ``media_libraries`` > legacy site ``media_library``.
    """
    field_libraries = _named(field_config, "media_libraries")
    if isinstance(field_libraries, Mapping) and field_libraries.get(library_name) is not None:
        return field_libraries[library_name]

    # A legacy field block applies when either level names this library
    if library_name in (_legacy_name(field_config), _legacy_name(site_config)):
        legacy_field = _named(field_config, "media_library")
        if legacy_field is not None:
            return legacy_field

    site_libraries = _named(site_config, "media_libraries")
    if isinstance(site_libraries, Mapping) and site_libraries.get(library_name) is not None:
        return site_libraries[library_name]

    if _legacy_name(site_config) == library_name:
        return site_config["media_library"]

    return {}


def get_default_media_library_options(
    field_config: Optional[Mapping[str, Any]] = None,
    site_config: Optional[Mapping[str, Any]] = None,
) -> DefaultMediaLibraryOptionsDTO:
    options = get_media_library_options(DEFAULT_LIBRARY, field_config, site_config)
    config = options.get("config") if isinstance(options, Mapping) else None
    config = config if isinstance(config, Mapping) else {}

    max_size = config.get("max_file_size")
    transformations = config.get("transformations")

    return DefaultMediaLibraryOptionsDTO(
        # bool is an int subclass but never a size
        max_file_size=max_size if isinstance(max_size, int) and not isinstance(max_size, bool) else None,
        transformations=dict(transformations) if isinstance(transformations, Mapping) else None,
    )


def get_stock_asset_media_library_options(
    available_providers: Iterable[str],
    field_config: Optional[Mapping[str, Any]] = None,
    site_config: Optional[Mapping[str, Any]] = None,
) -> StockAssetMediaLibraryOptionsDTO:
    """Configured provider list, else every registered stock asset provider."""
    options = get_media_library_options(STOCK_ASSETS_LIBRARY, field_config, site_config)
    providers = options.get("providers") if isinstance(options, Mapping) else None

    if isinstance(providers, list):
        return StockAssetMediaLibraryOptionsDTO(providers=[str(p) for p in providers])
    return StockAssetMediaLibraryOptionsDTO(providers=list(available_providers))
