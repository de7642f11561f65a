# lead_service/domain/types.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class DedupScope(str, Enum):
    brand = "brand"
    namespace = "namespace"


class PullOutcome(str, Enum):
    served = "served"
    # buffer empty and no backfill requested
    empty = "empty"
    # durable: the provider has nothing more for this cursor
    exhausted = "exhausted"
    # transient: iteration / empty-page cap hit
    gave_up = "gave_up"
    translation_failed = "translation_failed"
    upstream_unavailable = "upstream_unavailable"


@dataclass(frozen=True)
class PersonResult:
    """One candidate as returned by the search or enrichment provider."""
    id: str | None
    email: str | None
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "PersonResult":
        pid = payload.get("id") or payload.get("apolloPersonId")
        email = payload.get("email")
        return cls(
            id=str(pid) if pid else None,
            email=email if isinstance(email, str) and email.strip() else None,
            raw=dict(payload),
        )


@dataclass(frozen=True)
class SearchPage:
    people: list[PersonResult]
    page: int
    total_pages: int
    total_entries: int

    @property
    def done(self) -> bool:
        return self.page >= self.total_pages


@dataclass(frozen=True)
class EnrichResult:
    # None when the provider knows the person but has no email on file
    person: PersonResult | None


@dataclass(frozen=True)
class ValidationError:
    field: str
    message: str
    value: Any = None


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    errors: list[ValidationError] = field(default_factory=list)


@dataclass
class CursorState:
    page: int = 1
    exhausted: bool = False

    @classmethod
    def from_json(cls, state: Any) -> "CursorState":
        if not isinstance(state, dict):
            return cls()
        try:
            page = int(state.get("page") or 1)
        except (TypeError, ValueError):
            page = 1
        return cls(page=max(page, 1), exhausted=bool(state.get("exhausted", False)))

    def to_json(self) -> dict[str, Any]:
        return {"page": self.page, "exhausted": self.exhausted}


@dataclass(frozen=True)
class FillResult:
    filled: int
    exhausted: bool
    # set when the walker could not reach the provider or translate filters
    failure: PullOutcome | None = None


@dataclass
class FillStats:
    """
    Per-page counters (logged by the walker).
    """
    filled: int = 0
    already_buffered: int = 0
    already_served: int = 0
    no_email_cached: int = 0

    def snapshot(self) -> dict[str, int]:
        return {
            "filled": self.filled,
            "already_buffered": self.already_buffered,
            "already_served": self.already_served,
            "no_email_cached": self.no_email_cached,
        }


@dataclass(frozen=True)
class ServedLeadView:
    email: str
    external_id: str | None
    data: Any
    brand_id: str | None
    campaign_id: str
    org_id: str | None = None
    user_id: str | None = None

    def to_json(self) -> dict[str, Any]:
        return {
            "email": self.email,
            "externalId": self.external_id,
            "data": self.data,
            "brandId": self.brand_id,
            "campaignId": self.campaign_id,
            "orgId": self.org_id,
            "userId": self.user_id,
        }


@dataclass(frozen=True)
class PullResult:
    outcome: PullOutcome
    lead: ServedLeadView | None = None
    iterations: int = 0

    @property
    def found(self) -> bool:
        return self.outcome == PullOutcome.served

    def to_response(self) -> dict[str, Any]:
        out: dict[str, Any] = {"found": self.found, "reason": self.outcome.value}
        if self.lead is not None:
            out["lead"] = self.lead.to_json()
        return out


@dataclass(frozen=True)
class PushResult:
    buffered: int
    skipped_already_served: int

    def to_response(self) -> dict[str, int]:
        return {"buffered": self.buffered, "skippedAlreadyServed": self.skipped_already_served}
