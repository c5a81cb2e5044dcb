from datetime import datetime, timezone

import pytest

from domain.media_library.exceptions import ParseFailureError
from infrastructure.external.media_libraries.listing import parse_list_objects, parse_timestamp


def test_parses_namespaced_page(xml_page):
    body = xml_page(
        [("photos/a.jpg", 1024, "2024-05-01T10:00:00.000Z"), ("notes.txt", 12, "2024-04-01T09:00:00Z")],
        truncated=True,
        token="1/next==",
        prefixes=("photos/",),
    )
    page = parse_list_objects(body)

    assert [o.key for o in page.objects] == ["photos/a.jpg", "notes.txt"]
    assert page.objects[0].size == 1024
    assert page.objects[0].last_modified == datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)
    assert page.common_prefixes == ["photos/"]
    assert page.is_truncated is True
    assert page.next_continuation_token == "1/next=="


def test_parses_page_without_namespace(xml_page):
    page = parse_list_objects(xml_page([("x.png", 1, "2024-01-01T00:00:00Z")], namespace=False))
    assert [o.key for o in page.objects] == ["x.png"]
    assert page.is_truncated is False
    assert page.next_continuation_token is None


def test_empty_bucket(xml_page):
    page = parse_list_objects(xml_page([]))
    assert page.objects == []


def test_directory_marker_flag(xml_page):
    page = parse_list_objects(xml_page([("folder/", 0, "2024-01-01T00:00:00Z"), ("empty.txt", 0, "2024-01-01T00:00:00Z")]))
    assert [o.is_directory_marker for o in page.objects] == [True, False]


def test_malformed_xml_raises():
    with pytest.raises(ParseFailureError):
        parse_list_objects(b"<ListBucketResult><Contents>")


def test_error_document_raises():
    body = "<?xml version='1.0'?><Error><Code>AccessDenied</Code></Error>"
    with pytest.raises(ParseFailureError, match="Error"):
        parse_list_objects(body)


def test_parse_timestamp_edge_cases():
    assert parse_timestamp(None) is None
    assert parse_timestamp("not a date") is None
    assert parse_timestamp("2024-05-01T10:00:00").tzinfo == timezone.utc


@pytest.mark.parametrize(
    "value, microsecond",
    [
        ("2024-05-01T10:00:00.5Z", 500000),
        ("2024-05-01T10:00:00.12Z", 120000),
        ("2024-05-01T10:00:00.123Z", 123000),
        ("2024-05-01T10:00:00.1234567Z", 123456),
    ],
)
def test_parse_timestamp_any_fraction_length(value, microsecond):
    parsed = parse_timestamp(value)
    assert parsed == datetime(2024, 5, 1, 10, 0, 0, microsecond, tzinfo=timezone.utc)
