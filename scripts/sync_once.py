# scripts/sync_once.py
from __future__ import annotations

import argparse
import asyncio
import json
import logging

import httpx

from hayvn.config import settings
from hayvn.db import async_session
from hayvn.logging_setup import configure_logging
from hayvn.service_layer.sync import SyncOptions, sync_connections


async def main() -> None:
    parser = argparse.ArgumentParser(description="Run one IDX sync pass for a brokerage.")
    parser.add_argument("--brokerage-id", required=True)
    parser.add_argument("--connection-id", default=None)
    parser.add_argument("--dry-run", action="store_true", help="Fetch + normalize only (connectivity test)")
    parser.add_argument("--include-photos", action="store_true")
    args = parser.parse_args()

    configure_logging()
    options = SyncOptions.from_settings(dry_run=args.dry_run, include_photos=args.include_photos)

    async with httpx.AsyncClient(timeout=float(settings.HTTP_TIMEOUT_S)) as http:
        async with async_session() as session:
            res = await sync_connections(
                session,
                http,
                brokerage_id=args.brokerage_id,
                connection_id=args.connection_id,
                options=options,
            )

    logging.getLogger(__name__).info("sync finished")
    print(json.dumps(res, indent=2, default=str))


if __name__ == "__main__":
    asyncio.run(main())
