#!/usr/bin/env python3
"""
Notification endpoints - retry failed deliveries, announce status changes.
"""

from fastapi import APIRouter, Depends

from notification.retry import RetryCoordinator
from pipeline.status_change import StatusChangeNotifier
from ..dependencies import get_retry_coordinator, get_status_change_notifier
from ..models.requests import RetryRequest, StatusChangeRequest
from ..models.responses import RetryResponse, StatusChangeResponse

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.post("/retry", response_model=RetryResponse)
def retry_notification(
    request: RetryRequest,
    coordinator: RetryCoordinator = Depends(get_retry_coordinator)
):
    """
    Re-send a failed notification.

    Already-sent and exhausted notifications come back with success=false
    and an explanatory message.
    """
    result = coordinator.retry(request.notification_id)
    return RetryResponse(success=result.success, message=result.message)


@router.post("/status-change", response_model=StatusChangeResponse)
def notify_status_change(
    request: StatusChangeRequest,
    notifier: StatusChangeNotifier = Depends(get_status_change_notifier)
):
    """
    Email the candidate and staff when an application reaches interview,
    offer or hired. Other statuses are acknowledged with notified=false.
    """
    result = notifier.notify_status_change(
        request.application_id, request.new_status, request.old_status
    )
    return result.to_response()
