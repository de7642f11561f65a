# scripts/prune_idempotency.py
from __future__ import annotations

import argparse
import asyncio

from lead_service.entrypoints.log_setup import configure_logging
from lead_service.service_layer.idempotency import prune_expired
from lead_service.service_layer.unit_of_work import SqlAlchemyUnitOfWork


async def main(ttl_hours: float | None) -> None:
    configure_logging()
    async with SqlAlchemyUnitOfWork() as uow:
        n = await prune_expired(uow.repos, ttl_hours=ttl_hours)
    print(f"OK: pruned {n} idempotency records.")


if __name__ == "__main__":
    p = argparse.ArgumentParser(description="Prune expired idempotency records")
    p.add_argument("--ttl-hours", type=float, default=None)
    args = p.parse_args()
    asyncio.run(main(args.ttl_hours))
