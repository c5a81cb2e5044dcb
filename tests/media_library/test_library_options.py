from application.utils.media_library import (
    get_default_media_library_options,
    get_media_library_options,
    get_stock_asset_media_library_options,
)

FIELD_NEW = {"media_libraries": {"default": {"config": {"max_file_size": 100}}}}
FIELD_LEGACY = {"media_library": {"name": "default", "config": {"max_file_size": 200}}}
SITE_NEW = {"media_libraries": {"default": {"config": {"max_file_size": 300}}}}
SITE_LEGACY = {"media_library": {"name": "default", "config": {"max_file_size": 400}}}


def _size(field_config=None, site_config=None):
    return get_media_library_options("default", field_config, site_config)["config"]["max_file_size"]


def test_precedence_order():
    assert _size({**FIELD_NEW, **FIELD_LEGACY}, {**SITE_NEW, **SITE_LEGACY}) == 100
    assert _size(FIELD_LEGACY, {**SITE_NEW, **SITE_LEGACY}) == 200
    assert _size({}, {**SITE_NEW, **SITE_LEGACY}) == 300
    assert _size(None, SITE_LEGACY) == 400


def test_legacy_field_block_applies_when_site_names_the_library():
    field = {"media_library": {"config": {"max_file_size": 5}}}
    assert _size(field, SITE_LEGACY) == 5


def test_legacy_block_for_another_library_is_ignored():
    site = {"media_library": {"name": "cloudinary", "config": {"max_file_size": 1}}}
    assert get_media_library_options("default", None, site) == {}


def test_no_configuration_returns_empty():
    assert get_media_library_options() == {}


def test_default_options_normalization():
    options = get_default_media_library_options(
        {"media_libraries": {"default": {"config": {"max_file_size": 1024, "transformations": {"svg": {"optimize": True}}}}}}
    )
    assert options.max_file_size == 1024
    assert options.transformations == {"svg": {"optimize": True}}


def test_default_options_reject_invalid_values():
    for value in (1.5, "10", True, None):
        options = get_default_media_library_options(
            {"media_libraries": {"default": {"config": {"max_file_size": value, "transformations": ["x"]}}}}
        )
        assert options.max_file_size is None
        assert options.transformations is None


def test_default_options_when_library_is_a_boolean():
    options = get_default_media_library_options({"media_libraries": {"default": True}})
    assert options.max_file_size is None


def test_stock_asset_providers():
    assert get_stock_asset_media_library_options(["pexels", "unsplash"]).providers == ["pexels", "unsplash"]
    configured = get_stock_asset_media_library_options(
        ["pexels", "unsplash"], {"media_libraries": {"stock_assets": {"providers": []}}}
    )
    assert configured.providers == []
