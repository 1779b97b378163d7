from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from call_inbox.core.database import get_db
from call_inbox.core.deps import get_call_feed, require_auth
from call_inbox.schemas import CallClaimOut, CallTransitionRequest
from call_inbox.services import claims
from call_inbox.services.auth import AuthContext
from call_inbox.services.feed import CallFeed
from call_inbox.services.notifications import send_call_status_notification

router = APIRouter(prefix="/calls", tags=["calls"])


@router.get("", response_model=List[CallClaimOut])
def list_calls(
    search: Optional[str] = None,
    status: Optional[str] = None,
    extension: Optional[str] = None,
    include_expired: bool = Query(default=False, alias="includeExpired"),
    include_handled: bool = Query(default=False, alias="includeHandled"),
    limit: Optional[int] = Query(default=None, ge=1),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    filters = claims.CallFilters(
        search=search,
        status=status,
        extension=extension,
        include_expired=include_expired,
        include_handled=include_handled,
        limit=limit,
    )
    return claims.list_active(db, filters)


@router.get("/stream")
async def stream_calls(
    request: Request,
    feed: CallFeed = Depends(get_call_feed),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    # The feed opens its own session per tick.
    db.close()
    return StreamingResponse(
        feed.stream(request.is_disconnected),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@router.patch("/{phone_norm}", response_model=CallClaimOut)
def update_call(
    phone_norm: str,
    payload: CallTransitionRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    result = claims.transition(db, phone_norm, payload.status, payload.extension)
    if result.status_changed:
        background_tasks.add_task(
            send_call_status_notification,
            result.claim.phone_norm,
            result.claim.status,
            result.claim.handled_by_ext,
        )
    return result.claim
