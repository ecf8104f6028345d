"""Lead listing and editing endpoints."""

from fastapi import APIRouter, Depends, HTTPException

from leadboard.core.context import SessionContext
from leadboard.core.errors import (
    EditInProgressError,
    FetchError,
    InteractionHistoryError,
    LeadNotFoundError,
    UpdateError,
)
from leadboard.dependencies.leads import get_lead_editor, get_lead_repository, get_session_context
from leadboard.schemas.lead import (
    BoardColumn,
    InteractionCreate,
    Lead,
    LeadListResponse,
    LeadUpdate,
    StatusChange,
)
from leadboard.services.lead_editor import LeadEditor
from leadboard.services.lead_filters import filter_leads, group_by_status, lead_types, resolve_time_range
from leadboard.services.lead_repository import LeadRepository
from leadboard.services.stats import aggregate

router = APIRouter(prefix="/leads", tags=["leads"])


def load_leads(repository: LeadRepository, ctx: SessionContext, time_range: str) -> list[Lead]:
    try:
        since = resolve_time_range(time_range, ctx.now)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    try:
        return repository.list_leads(ctx, since=since)
    except FetchError as exc:
        raise HTTPException(status_code=502, detail=str(exc))


def _get_lead(repository: LeadRepository, ctx: SessionContext, lead_id: str) -> Lead:
    try:
        return repository.get_lead(ctx, lead_id)
    except LeadNotFoundError:
        raise HTTPException(status_code=404, detail="Lead not found")
    except FetchError as exc:
        raise HTTPException(status_code=502, detail=str(exc))


def _run_edit(edit):
    try:
        return edit()
    except LeadNotFoundError:
        raise HTTPException(status_code=404, detail="Lead not found")
    except EditInProgressError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except InteractionHistoryError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except FetchError as exc:
        raise HTTPException(status_code=502, detail=str(exc))
    except UpdateError as exc:
        reconciled = exc.reconciled.model_dump(mode="json") if exc.reconciled is not None else None
        raise HTTPException(status_code=502, detail={"message": str(exc), "lead": reconciled})


@router.get("/", response_model=LeadListResponse)
async def list_leads(
    time_range: str = "all",
    search: str | None = None,
    lead_type: str | None = "all",
    repository: LeadRepository = Depends(get_lead_repository),
    ctx: SessionContext = Depends(get_session_context),
):
    leads = load_leads(repository, ctx, time_range)
    filtered = filter_leads(leads, search=search, lead_type=lead_type)
    return LeadListResponse(leads=filtered, stats=aggregate(filtered), lead_types=lead_types(leads))


@router.get("/board", response_model=list[BoardColumn])
async def get_board(
    time_range: str = "all",
    search: str | None = None,
    lead_type: str | None = "all",
    repository: LeadRepository = Depends(get_lead_repository),
    ctx: SessionContext = Depends(get_session_context),
):
    leads = load_leads(repository, ctx, time_range)
    return group_by_status(filter_leads(leads, search=search, lead_type=lead_type))


@router.get("/{lead_id}", response_model=Lead)
async def get_lead(
    lead_id: str,
    repository: LeadRepository = Depends(get_lead_repository),
    ctx: SessionContext = Depends(get_session_context),
):
    return _get_lead(repository, ctx, lead_id)


@router.patch("/{lead_id}", response_model=Lead)
async def update_lead(
    lead_id: str,
    lead_in: LeadUpdate,
    editor: LeadEditor = Depends(get_lead_editor),
    ctx: SessionContext = Depends(get_session_context),
):
    changes = lead_in.model_dump(exclude_unset=True)
    checklist = changes.pop("activity_checklist", None)
    return _run_edit(lambda: editor.update_fields(ctx, lead_id, changes, checklist=checklist))


@router.post("/{lead_id}/status", response_model=Lead)
async def change_status(
    lead_id: str,
    change_in: StatusChange,
    editor: LeadEditor = Depends(get_lead_editor),
    ctx: SessionContext = Depends(get_session_context),
):
    return _run_edit(lambda: editor.change_status(ctx, lead_id, change_in.status, change_in.note))


@router.post("/{lead_id}/interactions", response_model=Lead)
async def add_interaction(
    lead_id: str,
    interaction_in: InteractionCreate,
    editor: LeadEditor = Depends(get_lead_editor),
    ctx: SessionContext = Depends(get_session_context),
):
    return _run_edit(
        lambda: editor.add_interaction(
            ctx,
            lead_id,
            interaction_in.type,
            interaction_in.summary,
            notes=interaction_in.notes,
            action_items=interaction_in.action_items,
            date=interaction_in.date,
        )
    )
