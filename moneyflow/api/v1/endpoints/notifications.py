"""Manual notification sends."""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends

from moneyflow.api import deps
from moneyflow.schemas import DispatchReportRead, NotificationSendRequest
from moneyflow.services.notifications import NotificationService
from moneyflow.utils.exceptions import (
    DispatchError,
    ValidationError,
    handle_dispatch_error,
    handle_validation_error,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.post("/send", response_model=DispatchReportRead)
def send_notification(
    payload: NotificationSendRequest,
    user_id: uuid.UUID = Depends(deps.get_current_user_id),
    service: NotificationService = Depends(deps.get_notification_service),
) -> DispatchReportRead:
    """Send a notification to every device of the caller.

    A caller without devices gets ``status="no_subscriptions"`` rather than an error.
    """

    try:
        report = service.send(user_id, payload.title, payload.body, payload.category, payload.data)
    except ValidationError as exc:
        raise handle_validation_error(exc) from exc
    except DispatchError as exc:
        raise handle_dispatch_error(exc) from exc
    return DispatchReportRead.model_validate(report)
