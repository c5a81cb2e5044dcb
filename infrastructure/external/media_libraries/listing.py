"""ListObjectsV2 XML response parsing."""
from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from typing import Optional, Union

from domain.media_library.exceptions import ParseFailureError
from .models import ListedObject, ListPage

_FRACTION = re.compile(r"\.(\d+)")


def _local_name(tag: str) -> str:
    # "{http://s3.amazonaws.com/doc/2006-03-01/}Key" -> "Key"
    return tag.rsplit("}", 1)[-1]


def _children(element: ET.Element, name: str) -> list[ET.Element]:
    return [child for child in element if _local_name(child.tag) == name]


def _child_text(element: ET.Element, name: str) -> Optional[str]:
    for child in element:
        if _local_name(child.tag) == name:
            return child.text or ""
    return None


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an S3 ISO-8601 timestamp (``2024-05-01T10:00:00.000Z``)."""
    if not value:
        return None
    try:
        # fromisoformat before 3.11 only takes 3 or 6 fractional digits
        normalized = _FRACTION.sub(
            lambda m: "." + m.group(1)[:6].ljust(6, "0"), value.strip(), count=1
        )
        parsed = datetime.fromisoformat(normalized.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_size(value: Optional[str]) -> int:
    try:
        return int(value or 0)
    except ValueError:
        return 0


def parse_list_objects(body: Union[str, bytes]) -> ListPage:
    """Parse one ListObjectsV2 page.

    Raises:
        ParseFailureError: If the body is not XML or not a ``ListBucketResult``.
    """
    try:
        root = ET.fromstring(body)
    except ET.ParseError as exc:
        raise ParseFailureError(f"Malformed listing response: {exc}") from exc

    if _local_name(root.tag) != "ListBucketResult":
        raise ParseFailureError(
            f"Unexpected listing root element: {_local_name(root.tag)}"
        )

    objects: list[ListedObject] = []
    for content in _children(root, "Contents"):
        key = _child_text(content, "Key")
        if not key:
            continue
        objects.append(
            ListedObject(
                key=key,
                size=_parse_size(_child_text(content, "Size")),
                last_modified=parse_timestamp(_child_text(content, "LastModified")),
            )
        )

    common_prefixes = [
        prefix
        for entry in _children(root, "CommonPrefixes")
        if (prefix := _child_text(entry, "Prefix"))
    ]

    is_truncated = (_child_text(root, "IsTruncated") or "").strip().lower() == "true"
    token = _child_text(root, "NextContinuationToken")

    return ListPage(
        objects=objects,
        common_prefixes=common_prefixes,
        is_truncated=is_truncated,
        next_continuation_token=token or None,
    )
