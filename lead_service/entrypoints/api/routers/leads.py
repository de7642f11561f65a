# lead_service/entrypoints/api/routers/leads.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query

from ....adapters.sqlalchemy_repos import SqlAlchemyRepos
from ....models import Enrichment, ServedLead
from ....schemas import EnrichmentOut, LeadsOut, ServedLeadOut
from ..deps import Tenant, get_repos, require_api_key, resolve_organization

log = logging.getLogger(__name__)

router = APIRouter(tags=["leads"], dependencies=[Depends(require_api_key)])


def enrichment_out(row: Enrichment, *, cached: bool = True) -> EnrichmentOut:
    return EnrichmentOut(
        email=row.email,
        external_person_id=row.external_person_id,
        first_name=row.first_name,
        last_name=row.last_name,
        title=row.title,
        linkedin_url=row.linkedin_url,
        organization_name=row.organization_name,
        organization_domain=row.organization_domain,
        organization_industry=row.organization_industry,
        organization_size=row.organization_size,
        enriched_at=row.enriched_at,
        cached=cached,
    )


def _lead_out(lead: ServedLead, enrichment: Enrichment | None) -> ServedLeadOut:
    return ServedLeadOut(
        id=lead.id,
        email=lead.email,
        external_id=lead.external_person_id,
        brand_id=lead.brand_id,
        campaign_id=lead.campaign_id,
        data=lead.payload,
        parent_run_id=lead.parent_run_id,
        run_id=lead.run_id,
        org_id=lead.actor_org_id,
        user_id=lead.actor_user_id,
        served_at=lead.served_at,
        enrichment=enrichment_out(enrichment) if enrichment is not None else None,
    )


@router.get("/leads", response_model=LeadsOut)
async def list_leads(
    brand_id: str | None = Query(default=None, alias="brandId"),
    campaign_id: str | None = Query(default=None, alias="campaignId"),
    org_id: str | None = Query(default=None, alias="orgId"),
    user_id: str | None = Query(default=None, alias="userId"),
    tenant: Tenant = Depends(resolve_organization),
    repos: SqlAlchemyRepos = Depends(get_repos),
) -> LeadsOut:
    leads = await repos.served.list_for_org(
        organization_id=tenant.organization_id,
        brand_id=brand_id,
        campaign_id=campaign_id,
        actor_org_id=org_id,
        actor_user_id=user_id,
    )
    enrichments = await repos.enrichments.by_emails(sorted({lead.email for lead in leads}))
    by_email = {e.email: e for e in enrichments if e.email}
    await repos.session.commit()

    log.info("leads org=%s found=%s enriched=%s", tenant.organization_id, len(leads), len(by_email))
    return LeadsOut(leads=[_lead_out(lead, by_email.get(lead.email)) for lead in leads])
