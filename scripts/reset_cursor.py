# scripts/reset_cursor.py
"""
Clear the durable search cursor for one (organization, namespace) so the
next backfill starts again from page 1.

    python -m scripts.reset_cursor ORG_ID NAMESPACE
"""
from __future__ import annotations

import argparse
import asyncio
import logging

from lead_service.entrypoints.log_setup import configure_logging
from lead_service.service_layer.cursors import reset_cursor
from lead_service.service_layer.unit_of_work import SqlAlchemyUnitOfWork

log = logging.getLogger(__name__)


async def main(organization_id: int, namespace: str) -> None:
    configure_logging()
    async with SqlAlchemyUnitOfWork() as uow:
        deleted = await reset_cursor(uow.repos, organization_id=organization_id, namespace=namespace)

    if deleted:
        log.info("cursor reset org=%s ns=%s", organization_id, namespace)
    else:
        log.info("no cursor stored for org=%s ns=%s", organization_id, namespace)


if __name__ == "__main__":
    p = argparse.ArgumentParser(description="Reset a search cursor")
    p.add_argument("organization_id", type=int)
    p.add_argument("namespace")
    args = p.parse_args()
    asyncio.run(main(args.organization_id, args.namespace))
