# lead_service/adapters/sqlalchemy_repos.py
from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from .repos.buffer import BufferRepository
from .repos.cursors import CursorRepository
from .repos.enrichments import EnrichmentRepository
from .repos.idempotency import IdempotencyRepository
from .repos.organizations import OrganizationRepository
from .repos.served import ServedLeadRepository


class SqlAlchemyRepos:
    """All repositories bound to one session."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.buffer = BufferRepository(session)
        self.served = ServedLeadRepository(session)
        self.enrichments = EnrichmentRepository(session)
        self.cursors = CursorRepository(session)
        self.idempotency = IdempotencyRepository(session)
        self.organizations = OrganizationRepository(session)
