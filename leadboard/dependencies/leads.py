"""Dependencies wiring the lead core into request handlers."""

from fastapi import Depends
from sqlalchemy.orm import Session

from leadboard.core.context import SessionContext
from leadboard.core.settings import get_settings
from leadboard.db.session import get_db
from leadboard.dependencies.auth import get_current_user
from leadboard.models.user import User
from leadboard.services.lead_editor import LeadEditor
from leadboard.services.lead_repository import LeadRepository


def get_session_context(current_user: User = Depends(get_current_user)) -> SessionContext:
    return SessionContext(user_id=current_user.id)


def get_lead_repository(db: Session = Depends(get_db)) -> LeadRepository:
    return LeadRepository(db, tracking_mode=get_settings().tracking_mode)


def get_lead_editor(repository: LeadRepository = Depends(get_lead_repository)) -> LeadEditor:
    return LeadEditor(repository)
