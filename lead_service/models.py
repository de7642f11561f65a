# lead_service/models.py
from __future__ import annotations

import enum
from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    DateTime,
    Enum,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


# -----------------------------
# Core enums
# -----------------------------
class BufferStatus(str, enum.Enum):
    buffered = "buffered"
    served = "served"
    skipped = "skipped"


# -----------------------------
# Models
# -----------------------------
class Organization(Base):
    """
    Internal tenant id, resolved once per caller from (x-app-id, x-org-id).
    """
    __tablename__ = "organizations"
    __table_args__ = (UniqueConstraint("app_id", "external_id", name="uq_org_app_external"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    app_id: Mapped[str] = mapped_column(String(120))
    external_id: Mapped[str] = mapped_column(String(255))

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class BufferedLead(Base):
    __tablename__ = "lead_buffer"
    __table_args__ = (
        Index("ix_buffer_org_ns_status", "organization_id", "namespace", "status"),
        Index("ix_buffer_org_ns_person", "organization_id", "namespace", "external_person_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    organization_id: Mapped[int] = mapped_column(Integer, index=True)

    # campaign scope
    namespace: Mapped[str] = mapped_column(String(255))
    campaign_id: Mapped[str] = mapped_column(String(255))
    brand_id: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)

    # "" until enrichment finds one
    email: Mapped[str] = mapped_column(String(320), default="")
    external_person_id: Mapped[str | None] = mapped_column(String(120), nullable=True)
    payload: Mapped[Any | None] = mapped_column(JSON, nullable=True)

    status: Mapped[BufferStatus] = mapped_column(Enum(BufferStatus), default=BufferStatus.buffered)

    push_run_id: Mapped[str | None] = mapped_column(String(120), nullable=True, index=True)
    actor_org_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    actor_user_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class ServedLead(Base):
    """
    One row per contact handed out. The unique index is the at-most-once gate.
    """
    __tablename__ = "served_leads"
    __table_args__ = (
        UniqueConstraint("organization_id", "scope_key", "email", name="uq_served_org_scope_email"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    organization_id: Mapped[int] = mapped_column(Integer, index=True)
    scope_key: Mapped[str] = mapped_column(String(255))

    namespace: Mapped[str] = mapped_column(String(255))
    campaign_id: Mapped[str] = mapped_column(String(255), index=True)
    brand_id: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)

    email: Mapped[str] = mapped_column(String(320))
    external_person_id: Mapped[str | None] = mapped_column(String(120), nullable=True)
    payload: Mapped[Any | None] = mapped_column(JSON, nullable=True)

    parent_run_id: Mapped[str | None] = mapped_column(String(120), nullable=True, index=True)
    run_id: Mapped[str | None] = mapped_column(String(120), nullable=True, index=True)
    actor_org_id: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    actor_user_id: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)

    served_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class Enrichment(Base):
    """
    Global enrichment cache. email=None is a tombstone: the provider has no email for this person.
    """
    __tablename__ = "enrichments"
    __table_args__ = (
        UniqueConstraint("email", name="uq_enrichment_email"),
        UniqueConstraint("external_person_id", name="uq_enrichment_person"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    external_person_id: Mapped[str | None] = mapped_column(String(120), nullable=True)

    first_name: Mapped[str | None] = mapped_column(String(120), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(120), nullable=True)
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    linkedin_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    organization_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    organization_domain: Mapped[str | None] = mapped_column(String(255), nullable=True)
    organization_industry: Mapped[str | None] = mapped_column(String(255), nullable=True)
    organization_size: Mapped[str | None] = mapped_column(String(80), nullable=True)

    raw_response: Mapped[Any | None] = mapped_column(JSON, nullable=True)
    enriched_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class Cursor(Base):
    """
    Opaque per-namespace pagination state. The walker stores {"page": int, "exhausted": bool}.
    """
    __tablename__ = "cursors"
    __table_args__ = (UniqueConstraint("organization_id", "namespace", name="uq_cursor_org_ns"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    organization_id: Mapped[int] = mapped_column(Integer, index=True)
    namespace: Mapped[str] = mapped_column(String(255))
    state: Mapped[Any | None] = mapped_column(JSON, nullable=True)

    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class IdempotencyRecord(Base):
    __tablename__ = "idempotency_cache"
    __table_args__ = (UniqueConstraint("idempotency_key", name="uq_idempotency_key"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    idempotency_key: Mapped[str] = mapped_column(String(255))
    organization_id: Mapped[int] = mapped_column(Integer, index=True)
    response_json: Mapped[str] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
