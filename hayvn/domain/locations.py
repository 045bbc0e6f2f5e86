# hayvn/domain/locations.py
from __future__ import annotations

import re

_DELIMS = re.compile(r"[,;\n/|]+")
_WS = re.compile(r"\s+")
_NON_ALNUM = re.compile(r"[^a-z0-9]")
_ZIP = re.compile(r"^[0-9]{5}$")


def normalize_token(s: str | None) -> str:
    return _WS.sub(" ", (s or "").lower().strip())


def normalize_key(s: str | None) -> str:
    """Lowercase and drop everything but [a-z0-9], so "SanJose" == "San Jose"."""
    return _NON_ALNUM.sub("", (s or "").lower())


def is_zip_token(t: str) -> bool:
    return bool(_ZIP.match(t))


def parse_preferred_locations(raw: str | None) -> list[str]:
    """
    Split free-text preferences on commas, semicolons, newlines, slashes and pipes.

    >>> parse_preferred_locations("Irvine, 92618 | (Newport Beach)")
    ['irvine', '92618', 'newport beach']
    """
    if not raw:
        return []
    out: list[str] = []
    for part in _DELIMS.split(raw):
        t = normalize_token(part).replace("(", "").replace(")", "").strip()
        if t:
            out.append(t)
    return out


def split_tokens(tokens: list[str]) -> tuple[list[str], list[str]]:
    """(zip codes, place names); place names are cleaned for use in a LIKE pattern."""
    zips: list[str] = []
    places: list[str] = []
    for t in tokens:
        cleaned = normalize_token(t).replace("%", "").replace("_", "").replace(",", " ").strip()
        if not cleaned:
            continue
        if is_zip_token(cleaned):
            zips.append(cleaned)
        else:
            places.append(cleaned)
    return zips, places
