# hayvn/adapters/clients/reso_web_api.py
from __future__ import annotations

import logging
from typing import Any, Literal

import httpx

from ...domain.errors import ConfigurationError, UpstreamError
from .http_resilience import HttpPolicy, RequestPacer, resilient_request

log = logging.getLogger(__name__)

Entity = Literal["Property", "Media"]


def _trim_trailing_slashes(u: str) -> str:
    return u.rstrip("/")


def to_property_endpoint(endpoint_url: str) -> str:
    trimmed = _trim_trailing_slashes(endpoint_url)
    if trimmed.lower().endswith("/property"):
        return trimmed
    return f"{trimmed}/Property"


def to_media_endpoint(endpoint_url: str) -> str:
    trimmed = _trim_trailing_slashes(endpoint_url)
    if trimmed.lower().endswith("/media"):
        return trimmed
    if trimmed.lower().endswith("/property"):
        return trimmed[: -len("/Property")] + "/Media"
    return f"{trimmed}/Media"


class ResoWebApiClient:
    """
    Paginated RESO Web API (OData) reader for one IDX connection.

    Pages are requested strictly in sequence with $top/$skip; the loop ends on
    a short page, an empty page, or after `max_pages`.
    """

    def __init__(
        self,
        *,
        endpoint_url: str | None,
        access_token: str | None,
        http: httpx.AsyncClient,
        policy: HttpPolicy | None = None,
        page_size_max: int = 300,
    ) -> None:
        if not endpoint_url or not access_token:
            raise ConfigurationError("Missing endpoint_url or api_key")
        self.endpoint_url = endpoint_url
        self.access_token = access_token
        self.http = http
        self.policy = policy or HttpPolicy()
        self.page_size_max = page_size_max
        self._pacer = RequestPacer(self.policy.rate_limit_rps)

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.access_token}", "Accept": "application/json"}

    def _base(self, entity: Entity) -> str:
        if entity == "Property":
            return to_property_endpoint(self.endpoint_url)
        return to_media_endpoint(self.endpoint_url)

    async def fetch_all(
        self,
        entity: Entity,
        *,
        top: int,
        max_pages: int,
        order_by: str | None = "ModificationTimestamp desc",
        query_filter: str | None = None,
    ) -> list[dict[str, Any]]:
        base = self._base(entity)
        safe_top = min(self.page_size_max, max(1, int(top)))

        rows: list[dict[str, Any]] = []
        skip = 0
        for page in range(max_pages):
            params: dict[str, Any] = {"$top": str(safe_top), "$skip": str(skip)}
            if order_by:
                params["$orderby"] = order_by
            if query_filter:
                params["$filter"] = query_filter

            resp = await resilient_request(
                self.http,
                "GET",
                base,
                policy=self.policy,
                pacer=self._pacer,
                headers=self._headers(),
                params=params,
            )
            if not resp.is_success:
                raise UpstreamError(
                    f"MLS HTTP {resp.status_code} {resp.reason_phrase}: {resp.text[:500]}",
                    status_code=resp.status_code,
                )

            try:
                body = resp.json()
            except ValueError:
                body = None
            value = body.get("value") if isinstance(body, dict) else None

            if not isinstance(value, list) or not value:
                break

            rows.extend(x for x in value if isinstance(x, dict))
            log.debug("%s page %d: %d rows from %s", entity, page, len(value), base)

            if len(value) < safe_top:
                break
            skip += safe_top

        return rows
