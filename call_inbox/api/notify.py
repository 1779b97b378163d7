from fastapi import APIRouter, BackgroundTasks, Depends

from call_inbox.core.deps import require_auth
from call_inbox.core.errors import InvalidInput
from call_inbox.schemas import NotifyRequest, NotifyResponse
from call_inbox.services.auth import AuthContext
from call_inbox.services.claims import normalize
from call_inbox.services.notifications import NOTIFIABLE_STATUSES, send_call_status_notification

router = APIRouter(prefix="/notify", tags=["notify"])


@router.post("", response_model=NotifyResponse)
def notify(
    payload: NotifyRequest,
    background_tasks: BackgroundTasks,
    auth: AuthContext = Depends(require_auth),
):
    phone = normalize(payload.phone)
    if not phone:
        raise InvalidInput("phone is required")
    if payload.status not in NOTIFIABLE_STATUSES:
        raise InvalidInput(f"status must be one of: {', '.join(NOTIFIABLE_STATUSES)}")
    background_tasks.add_task(
        send_call_status_notification, phone, payload.status, auth.extension
    )
    return NotifyResponse(message="Notification queued", phone=phone)
