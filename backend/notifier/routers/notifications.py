"""Event emission and admin broadcast endpoints."""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..dependencies import get_services, require_manage_role, require_root_role
from ..errors import ValidationError
from ..models import User
from ..models.enums import NotificationCategory
from ..schemas.notification import AdminSendRequest, EmitEventRequest, SendResponse
from ..services import Services
from ..services.events import parse_event
from ..services.recipients import parse_target

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["notifications"])

_CATEGORIES = {c.value for c in NotificationCategory}


@router.post("/admin/send-notification", response_model=SendResponse)
async def admin_send_notification(
    request: AdminSendRequest,
    user: User = Depends(require_root_role),
    db: AsyncSession = Depends(get_db),
    services: Services = Depends(get_services),
):
    """Send a message to all users, a role, or an explicit list of users."""
    if not request.title or not request.body or not request.category:
        raise ValidationError("title, body and category are required")
    if request.category not in _CATEGORIES:
        raise ValidationError(f"Unknown category: {request.category}")

    target = parse_target(request.target, request.role, request.user_ids)
    outcome = await services.notifications.send_to_target(
        db,
        target,
        request.title,
        request.body,
        request.link,
        request.category,
    )
    logger.info(f"Admin {user.id} sent '{request.category}' to {outcome.recipients} user(s)")
    return SendResponse(
        success=outcome.success,
        failure=outcome.failure,
        recipients=outcome.recipients,
    )


@router.post("/events/emit", response_model=SendResponse)
async def emit_event(
    request: EmitEventRequest,
    user: User = Depends(require_manage_role),
    db: AsyncSession = Depends(get_db),
    services: Services = Depends(get_services),
):
    """Notify the audience of a domain event raised by the web app."""
    event = parse_event(request.type, request.data)
    outcome = await services.notifications.emit_event(db, event)
    return SendResponse(
        success=outcome.success,
        failure=outcome.failure,
        recipients=outcome.recipients,
    )
