# tests/conftest.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Callable

import httpx
import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from hayvn.adapters.clients.http_resilience import HttpPolicy
from hayvn.models import (
    Agent,
    Base,
    Brokerage,
    Client,
    IdxConnection,
    IdxStatus,
    ListingStatus,
    MlsListing,
    utcnow,
)
from hayvn.service_layer.sync import SyncOptions

# no retries / no sleeping in tests
FAST_HTTP = HttpPolicy(timeout_s=5.0, max_retries=0, backoff_base_s=0.0, rate_limit_rps=0.0)


@pytest.fixture
async def engine():
    """
    Fresh in-memory DB per test. StaticPool makes all connections share the same
    in-memory database for the lifetime of this engine fixture.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def async_session_maker(engine):
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=True)


@pytest.fixture
def sync_options() -> Callable[..., SyncOptions]:
    def _make(**kw: Any) -> SyncOptions:
        kw.setdefault("http", FAST_HTTP)
        return SyncOptions(**kw)

    return _make


@pytest.fixture
async def brokerage(async_session_maker) -> Brokerage:
    async with async_session_maker() as session:
        b = Brokerage(id="brk-1", name="Coastal Homes")
        session.add(b)
        session.add(Brokerage(id="brk-2", name="Elsewhere Realty"))
        await session.commit()
        return b


@pytest.fixture
async def agent(async_session_maker, brokerage) -> Agent:
    async with async_session_maker() as session:
        a = Agent(id="agent-1", brokerage_id=brokerage.id, full_name="Dana Agent")
        session.add(a)
        await session.commit()
        return a


@pytest.fixture
def add_connection(async_session_maker, brokerage):
    async def _add(
        conn_id: str,
        *,
        endpoint_url: str | None = "https://feed-a.example.com/reso/odata",
        api_key: str | None = "tok-a",
        status: IdxStatus = IdxStatus.live,
        brokerage_id: str | None = None,
        query_filter: str | None = None,
    ) -> IdxConnection:
        async with async_session_maker() as session:
            c = IdxConnection(
                id=conn_id,
                brokerage_id=brokerage_id or brokerage.id,
                mls_name="MLSListings",
                endpoint_url=endpoint_url,
                api_key=api_key,
                status=status,
                query_filter=query_filter,
            )
            session.add(c)
            await session.commit()
            return c

    return _add


@pytest.fixture
def add_client(async_session_maker, brokerage):
    async def _add(
        client_id: str = "client-1",
        *,
        budget_min: float | None = None,
        budget_max: float | None = None,
        preferred_locations: str | None = None,
        agent_id: str | None = None,
        brokerage_id: str | None = "brk-1",
    ) -> Client:
        async with async_session_maker() as session:
            c = Client(
                id=client_id,
                brokerage_id=brokerage_id,
                agent_id=agent_id,
                budget_min=budget_min,
                budget_max=budget_max,
                preferred_locations=preferred_locations,
            )
            session.add(c)
            await session.commit()
            return c

    return _add


@pytest.fixture
def add_listing(async_session_maker):
    """Seed mls_listings directly (as a previous sync would have)."""
    counter = {"n": 0}

    async def _add(
        *,
        connection_id: str = "conn-a",
        brokerage_id: str = "brk-1",
        city: str | None = "Irvine",
        postal_code: str | None = "92618",
        list_price: float | None = 950_000,
        status: ListingStatus = ListingStatus.active,
        last_seen_at: datetime | None = None,
        beds: float | None = 3,
        baths: float | None = 2,
        sqft: float | None = 1800,
        listing_id: str | None = None,
    ) -> MlsListing:
        counter["n"] += 1
        n = counter["n"]
        async with async_session_maker() as session:
            row = MlsListing(
                id=listing_id or f"lst-{n}",
                brokerage_id=brokerage_id,
                idx_connection_id=connection_id,
                mls_number=f"ML{n:05d}",
                status=status,
                is_active=status == ListingStatus.active,
                city=city,
                postal_code=postal_code,
                state="CA",
                list_price=list_price,
                beds=beds,
                baths=baths,
                sqft=sqft,
                last_seen_at=last_seen_at or utcnow(),
            )
            session.add(row)
            await session.commit()
            return row

    return _add


def reso_record(n: int, **overrides: Any) -> dict[str, Any]:
    rec: dict[str, Any] = {
        "ListingKey": f"K{n:06d}",
        "StandardStatus": "Active",
        "ListPrice": 900_000 + n,
        "BedroomsTotal": 3,
        "BathroomsTotalInteger": 2,
        "LivingArea": 1750,
        "City": "Irvine",
        "StateOrProvince": "CA",
        "PostalCode": "92618",
        "OnMarketDate": "2024-03-01",
        "ModificationTimestamp": "2024-03-05T10:15:00Z",
        "UnparsedAddress": f"{n} Main St",
    }
    rec.update(overrides)
    return rec


class FakeResoFeed:
    """
    httpx.MockTransport handler serving $top/$skip pages per host.
    Hosts listed in `failing` answer with the given status code.
    """

    def __init__(self) -> None:
        self.records: dict[str, list[dict[str, Any]]] = {}
        self.media: dict[str, list[dict[str, Any]]] = {}
        self.failing: dict[str, int] = {}
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host
        if host in self.failing:
            return httpx.Response(self.failing[host], text="upstream exploded")

        top = int(request.url.params.get("$top", "300"))
        skip = int(request.url.params.get("$skip", "0"))
        source = self.media if request.url.path.lower().endswith("/media") else self.records
        rows = source.get(host, [])[skip : skip + top]
        return httpx.Response(200, json={"value": rows})

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
async def feed():
    f = FakeResoFeed()
    yield f


@pytest.fixture
def make_record():
    return reso_record
