# hayvn/domain/media.py
from __future__ import annotations

from typing import Any, Mapping

from .parsing import get_first, to_number, to_str

_NO_ORDER = 999999


def media_listing_key(m: Mapping[str, Any]) -> str | None:
    v = get_first(m, "ListingKey", "ListingId", "ListingKeyNumeric", "ResourceRecordKey")
    return to_str(v)


def media_url(m: Mapping[str, Any]) -> str | None:
    return to_str(
        get_first(m, "MediaURL", "MediaUrl", "MediaURLLarge", "MediaURLPrimary", "MediaURLHttps", "ResourceRecordURL")
    )


def media_order(m: Mapping[str, Any]) -> int | None:
    n = to_number(get_first(m, "Order", "OrderNumber", "MediaOrder", "SortOrder", "Sequence"))
    return None if n is None else int(n)


def media_caption(m: Mapping[str, Any]) -> str | None:
    c = get_first(m, "ShortDescription", "LongDescription", "Caption", "MediaCaption")
    if c is None:
        return None
    s = str(c).strip()
    return s or None


def group_media(records: list[dict[str, Any]]) -> dict[str, list[dict[str, Any]]]:
    out: dict[str, list[dict[str, Any]]] = {}
    for m in records:
        key = media_listing_key(m)
        if not key:
            continue
        out.setdefault(key, []).append(m)
    return out


def photo_rows(media: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Ordered photo rows for one listing; media without a URL is skipped."""
    ordered = sorted(media, key=lambda m: media_order(m) if media_order(m) is not None else _NO_ORDER)
    rows: list[dict[str, Any]] = []
    for idx, m in enumerate(ordered):
        url = media_url(m)
        if not url:
            continue
        order = media_order(m)
        rows.append({"sort_order": order if order is not None else idx, "url": url, "caption": media_caption(m)})
    return rows
