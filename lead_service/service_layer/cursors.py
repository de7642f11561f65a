# lead_service/service_layer/cursors.py
from __future__ import annotations

from typing import Any

from ..adapters.sqlalchemy_repos import SqlAlchemyRepos
from ..domain.types import CursorState


async def load_cursor(repos: SqlAlchemyRepos, *, organization_id: int, namespace: str) -> CursorState:
    row = await repos.cursors.get(organization_id=organization_id, namespace=namespace)
    return CursorState.from_json(row.state if row else None)


async def save_cursor(
    repos: SqlAlchemyRepos, *, organization_id: int, namespace: str, state: CursorState
) -> None:
    await repos.cursors.put(organization_id=organization_id, namespace=namespace, state=state.to_json())


async def get_raw_state(repos: SqlAlchemyRepos, *, organization_id: int, namespace: str) -> Any:
    row = await repos.cursors.get(organization_id=organization_id, namespace=namespace)
    return row.state if row else None


async def put_raw_state(repos: SqlAlchemyRepos, *, organization_id: int, namespace: str, state: Any) -> None:
    await repos.cursors.put(organization_id=organization_id, namespace=namespace, state=state)


async def reset_cursor(repos: SqlAlchemyRepos, *, organization_id: int, namespace: str) -> bool:
    """Operator reset: the next backfill starts again from page 1."""
    return await repos.cursors.delete(organization_id=organization_id, namespace=namespace)
