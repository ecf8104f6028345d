"""Dashboard stat card endpoints."""

from fastapi import APIRouter, Depends

from leadboard.api.leads import load_leads
from leadboard.core.context import SessionContext
from leadboard.dependencies.leads import get_lead_repository, get_session_context
from leadboard.schemas.stats import LeadStats
from leadboard.services.lead_filters import filter_leads
from leadboard.services.lead_repository import LeadRepository
from leadboard.services.stats import aggregate

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=LeadStats)
async def get_dashboard_stats(
    time_range: str = "all",
    search: str | None = None,
    lead_type: str | None = "all",
    repository: LeadRepository = Depends(get_lead_repository),
    ctx: SessionContext = Depends(get_session_context),
):
    leads = load_leads(repository, ctx, time_range)
    return aggregate(filter_leads(leads, search=search, lead_type=lead_type))
