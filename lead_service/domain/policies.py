# lead_service/domain/policies.py
from __future__ import annotations

from typing import Any

from .types import DedupScope


def normalize_email(email: str | None) -> str:
    if not email:
        return ""
    return email.strip().lower()


def resolve_scope_key(scope: DedupScope | str, *, namespace: str, brand_id: str | None) -> str:
    """
    The dedup boundary: "already served" means a ServedLead row exists for
    (organization, scope_key, email).
    """
    scope = DedupScope(scope)
    if scope == DedupScope.brand:
        if not brand_id:
            raise ValueError("brandId is required when dedup scope is 'brand'")
        return brand_id
    if not namespace:
        raise ValueError("namespace (campaignId) is required")
    return namespace


def merge_payload(base: Any, extra: dict[str, Any] | None) -> dict[str, Any]:
    """Shallow merge; enrichment fields win over search fields."""
    out: dict[str, Any] = dict(base) if isinstance(base, dict) else {}
    if extra:
        out.update(extra)
    return out


def is_delivered(result: dict[str, Any]) -> bool:
    """
    True if the contact was reached by any provider (broadcast or transactional)
    at any scope (campaign, brand, global).
    """
    for provider in ("broadcast", "transactional"):
        status = result.get(provider)
        if not isinstance(status, dict):
            continue
        for scope in ("campaign", "brand"):
            scoped = status.get(scope) or {}
            if (scoped.get("lead") or {}).get("contacted") or (scoped.get("email") or {}).get("contacted"):
                return True
        if ((status.get("global") or {}).get("email") or {}).get("contacted"):
            return True
    return False
