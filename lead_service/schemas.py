from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class LeadIn(CamelModel):
    # email may be left empty when externalId is given; it is filled in by enrichment
    email: str = ""
    external_id: str | None = Field(default=None, alias="externalId")
    data: Any = None

    @model_validator(mode="after")
    def _email_or_external_id(self) -> "LeadIn":
        if not self.email.strip() and not self.external_id:
            raise ValueError("lead needs an email or an externalId")
        return self


class PushRequest(CamelModel):
    campaign_id: str = Field(..., min_length=1, alias="campaignId")
    brand_id: str | None = Field(default=None, alias="brandId")
    parent_run_id: str | None = Field(default=None, alias="parentRunId")
    org_id: str | None = Field(default=None, alias="orgId")
    user_id: str | None = Field(default=None, alias="userId")
    leads: list[LeadIn]


class PushResponse(CamelModel):
    buffered: int = Field(..., ge=0)
    skipped_already_served: int = Field(..., ge=0, alias="skippedAlreadyServed")


class NextRequest(CamelModel):
    campaign_id: str = Field(..., min_length=1, alias="campaignId")
    brand_id: str | None = Field(default=None, alias="brandId")
    parent_run_id: str | None = Field(default=None, alias="parentRunId")
    search_params: dict[str, Any] | None = Field(default=None, alias="searchParams")
    org_id: str | None = Field(default=None, alias="orgId")
    user_id: str | None = Field(default=None, alias="userId")
    idempotency_key: str | None = Field(default=None, alias="idempotencyKey")


class CursorPut(BaseModel):
    # opaque; null is a legal value, an absent key is not
    state: Any = Field(...)


class CursorOut(BaseModel):
    state: Any = None


class StatsRequest(CamelModel):
    run_ids: list[str] | None = Field(default=None, alias="runIds")
    app_id: str | None = Field(default=None, alias="appId")
    brand_id: str | None = Field(default=None, alias="brandId")
    campaign_id: str | None = Field(default=None, alias="campaignId")
    org_id: str | None = Field(default=None, alias="orgId")


class ProviderStatsOut(CamelModel):
    enriched_leads_count: int = Field(0, alias="enrichedLeadsCount")
    search_count: int = Field(0, alias="searchCount")
    fetched_people_count: int = Field(0, alias="fetchedPeopleCount")
    total_matching_people: int = Field(0, alias="totalMatchingPeople")


class StatsOut(BaseModel):
    served: int
    buffered: int
    skipped: int
    provider: ProviderStatsOut


class EnrichRequest(BaseModel):
    email: str = Field(..., min_length=1)


class EnrichmentOut(CamelModel):
    email: str | None = None
    external_person_id: str | None = Field(default=None, alias="externalPersonId")
    first_name: str | None = Field(default=None, alias="firstName")
    last_name: str | None = Field(default=None, alias="lastName")
    title: str | None = None
    linkedin_url: str | None = Field(default=None, alias="linkedinUrl")
    organization_name: str | None = Field(default=None, alias="organizationName")
    organization_domain: str | None = Field(default=None, alias="organizationDomain")
    organization_industry: str | None = Field(default=None, alias="organizationIndustry")
    organization_size: str | None = Field(default=None, alias="organizationSize")
    enriched_at: datetime | None = Field(default=None, alias="enrichedAt")
    cached: bool = False


class ServedLeadOut(CamelModel):
    id: int
    email: str
    external_id: str | None = Field(default=None, alias="externalId")
    brand_id: str | None = Field(default=None, alias="brandId")
    campaign_id: str | None = Field(default=None, alias="campaignId")
    data: Any = None
    parent_run_id: str | None = Field(default=None, alias="parentRunId")
    run_id: str | None = Field(default=None, alias="runId")
    org_id: str | None = Field(default=None, alias="orgId")
    user_id: str | None = Field(default=None, alias="userId")
    served_at: datetime = Field(..., alias="servedAt")
    enrichment: EnrichmentOut | None = None


class LeadsOut(BaseModel):
    leads: list[ServedLeadOut]
