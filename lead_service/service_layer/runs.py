# lead_service/service_layer/runs.py
from __future__ import annotations

import logging
from typing import Any

from ..adapters.clients.runs import RunsClient
from ..config import settings

log = logging.getLogger(__name__)

_client = RunsClient()


def set_runs_client(client: RunsClient) -> None:
    global _client
    _client = client


async def start_child_run(
    *,
    parent_run_id: str | None,
    task_name: str,
    app_id: str | None = None,
    org_id: str | None = None,
    user_id: str | None = None,
    brand_id: str | None = None,
    campaign_id: str | None = None,
) -> str | None:
    """
    Create a child run under parent_run_id. Returns None (never raises) when
    there is no parent, tracking is disabled, or the tracker fails.
    """
    if not parent_run_id or not _client.enabled:
        return None
    try:
        return await _client.create_run(
            parentRunId=parent_run_id,
            serviceName=settings.RUNS_SERVICE_NAME,
            taskName=task_name,
            appId=app_id,
            orgId=org_id,
            userId=user_id,
            brandId=brand_id,
            campaignId=campaign_id,
        )
    except Exception:
        log.exception("failed to create child run task=%s parent=%s", task_name, parent_run_id)
        return None


async def finish_run(run_id: str | None, *, ok: bool = True) -> None:
    if not run_id or not _client.enabled:
        return
    try:
        await _client.update_run(run_id, "completed" if ok else "failed")
    except Exception:
        log.exception("failed to update run %s", run_id)


async def log_costs(run_id: str | None, items: list[dict[str, Any]]) -> None:
    items = [i for i in items if i.get("quantity")]
    if not run_id or not items or not _client.enabled:
        return
    try:
        await _client.add_costs(run_id, items)
    except Exception:
        log.exception("failed to log costs for run %s", run_id)
