"""Service and database health endpoints."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from leadboard.dependencies.leads import get_lead_repository
from leadboard.services.lead_repository import LeadRepository

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
def health_check():
    return {"status": "ok"}


@router.get("/db")
def database_health(repository: LeadRepository = Depends(get_lead_repository)):
    if not repository.check_connection():
        return JSONResponse(status_code=503, content={"status": "unavailable"})
    return {"status": "ok"}
