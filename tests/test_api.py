import httpx
import jwt
import pytest

from hayvn.adapters.identity import JwtIdentityVerifier
from hayvn.db import get_session
from hayvn.entrypoints.api.deps import get_http_client, get_identity_verifier
from hayvn.entrypoints.fastapi_app import create_app
from hayvn.models import Agent

SECRET = "test-secret-that-is-at-least-32-bytes-long"
SYNC = "/functions/idx-sync"
RECOMMEND = "/functions/recommend-matches"


def _token(sub: str = "agent-1") -> str:
    return jwt.encode({"sub": sub}, SECRET, algorithm="HS256")


def _auth(sub: str = "agent-1") -> dict[str, str]:
    return {"Authorization": f"Bearer {_token(sub)}"}


@pytest.fixture
async def api(async_session_maker, feed):
    app = create_app(create_tables=False)

    async def _session():
        async with async_session_maker() as session:
            yield session

    async def _http():
        async with feed.client() as http:
            yield http

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_http_client] = _http
    app.dependency_overrides[get_identity_verifier] = lambda: JwtIdentityVerifier(SECRET)

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def test_health(api):
    r = await api.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


@pytest.mark.parametrize("path", [SYNC, RECOMMEND])
async def test_preflight_is_no_content(api, path):
    r = await api.options(path)
    assert r.status_code == 204


@pytest.mark.parametrize("path", [SYNC, RECOMMEND])
async def test_other_methods_are_rejected(api, path):
    r = await api.get(path)
    assert r.status_code == 405
    assert r.json() == {"ok": False, "error": "Use POST"}


async def test_missing_bearer_is_unauthorized(api, agent):
    r = await api.post(SYNC)
    assert r.status_code == 401
    assert r.json() == {"ok": False, "error": "Missing Authorization bearer token"}


async def test_bad_token_is_unauthorized(api, agent):
    forged = jwt.encode({"sub": "agent-1"}, "some-other-secret-of-sufficient-length", algorithm="HS256")
    r = await api.post(SYNC, headers={"Authorization": f"Bearer {forged}"})
    assert r.status_code == 401
    assert r.json()["error"] == "Invalid session"


async def test_sync_requires_a_brokerage_link(api, async_session_maker, brokerage):
    async with async_session_maker() as session:
        session.add(Agent(id="agent-solo", brokerage_id=None))
        await session.commit()

    r = await api.post(SYNC, headers=_auth("agent-solo"))
    assert r.status_code == 403


async def test_sync_dry_run(api, agent, add_connection, feed, make_record):
    await add_connection("conn-a")
    feed.records["feed-a.example.com"] = [make_record(i) for i in range(3)]

    r = await api.post(SYNC, params={"dry_run": "1"}, headers=_auth())

    assert r.status_code == 200
    body = r.json()
    assert body["ok"] is True
    assert body["dry_run"] is True
    assert body["count"] == 1
    assert body["results"] == [
        {"connection_id": "conn-a", "ok": True, "dry_run": True, "fetched_raw": 3, "normalized": 3}
    ]


async def test_sync_without_connections(api, agent):
    r = await api.post(SYNC, headers=_auth())
    assert r.status_code == 200
    assert r.json() == {"ok": True, "message": "No live IDX connections to sync"}


async def test_recommend_requires_client_id(api, agent):
    r = await api.post(RECOMMEND, json={}, headers=_auth())
    assert r.status_code == 400
    assert r.json() == {"ok": False, "error": "client_id is required"}


async def test_recommend_rejects_malformed_body(api, agent):
    r = await api.post(
        RECOMMEND, content=b"{not json", headers={**_auth(), "Content-Type": "application/json"}
    )
    assert r.status_code == 400
    assert r.json()["ok"] is False


async def test_recommend_unknown_client(api, agent):
    r = await api.post(RECOMMEND, json={"client_id": "ghost"}, headers=_auth())
    assert r.status_code == 404
    assert r.json() == {"ok": False, "error": "Client not found"}


async def test_recommend_end_to_end(api, agent, add_client, add_listing):
    await add_client(budget_min=800_000, budget_max=1_200_000, preferred_locations="Irvine, 92618", agent_id="agent-1")
    irvine = await add_listing(list_price=950_000)

    r = await api.post(RECOMMEND, json={"client_id": "client-1", "target_new": 3, "limit": 500}, headers=_auth())

    assert r.status_code == 200
    body = r.json()
    assert body["target_new"] == 3
    assert body["recommendations_written"] == 1
    assert body["recommendations_deleted"] == 0
    assert body["new_count_after"] == 1
    assert body["top"][0]["mls_listing_id"] == irvine.id
    assert body["top"][0]["reasons"][0] == "In budget"

    # committed: a repeat call sees the queued row
    again = await api.post(RECOMMEND, json={"client_id": "client-1", "target_new": 1}, headers=_auth())
    assert again.json()["mode_used"] == "noop"


async def test_recommend_non_numeric_limits_fall_back_to_defaults(api, agent, add_client):
    await add_client(agent_id="agent-1")

    r = await api.post(
        RECOMMEND, json={"client_id": "client-1", "limit": "abc", "target_new": "x"}, headers=_auth()
    )

    assert r.status_code == 200
    assert r.json()["target_new"] == 5


async def test_recommend_accepts_numeric_client_id(api, agent):
    r = await api.post(RECOMMEND, json={"client_id": 123}, headers=_auth())
    assert r.status_code == 404
    assert r.json() == {"ok": False, "error": "Client not found"}


async def test_sync_reports_failed_connection_in_a_successful_response(
    api, agent, add_connection, feed, make_record
):
    await add_connection("conn-a")
    await add_connection("conn-b", endpoint_url="https://feed-b.example.com/reso/odata", api_key="tok-b")
    feed.failing["feed-a.example.com"] = 500
    feed.records["feed-b.example.com"] = [make_record(1)]

    r = await api.post(SYNC, headers=_auth())

    assert r.status_code == 200
    by_id = {row["connection_id"]: row for row in r.json()["results"]}
    assert by_id["conn-a"]["ok"] is False
    assert by_id["conn-a"]["error"].startswith("MLS HTTP 500")
    assert by_id["conn-b"]["ok"] is True
    assert by_id["conn-b"]["upserted"] == 1


async def test_unexpected_error_is_a_500_with_cors_headers(async_session_maker, agent):
    app = create_app(create_tables=False)

    async def _session():
        async with async_session_maker() as session:
            yield session

    async def _broken_http():
        raise RuntimeError("outbound client unavailable")

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_http_client] = _broken_http
    app.dependency_overrides[get_identity_verifier] = lambda: JwtIdentityVerifier(SECRET)

    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        r = await client.post(SYNC, headers={**_auth(), "Origin": "https://app.example.com"})

    assert r.status_code == 500
    assert r.json() == {"ok": False, "error": "outbound client unavailable"}
    assert r.headers["access-control-allow-origin"] == "*"
