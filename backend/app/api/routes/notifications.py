from datetime import datetime
from typing import Callable

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_clock, require_role
from app.db.session import get_db
from app.models.user import User, UserRole
from app.schemas.auth import MessageOut
from app.schemas.notifications import (
    NotificationCreateIn,
    NotificationListOut,
    NotificationOut,
    NotificationScheduleIn,
)
from app.services.notifications import NotificationService

router = APIRouter()

admin_only = require_role(UserRole.ADMIN)


def get_notification_service(
    db: Session = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> NotificationService:
    return NotificationService(db, clock=clock)


@router.post("", response_model=NotificationOut, status_code=201)
def create_notification(
    payload: NotificationCreateIn,
    current: User = Depends(admin_only),
    notifications: NotificationService = Depends(get_notification_service),
):
    return notifications.create(current, payload)


@router.get("", response_model=NotificationListOut)
def list_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current: User = Depends(admin_only),
    notifications: NotificationService = Depends(get_notification_service),
):
    return notifications.list(page=page, limit=limit)


@router.get("/{notification_id}", response_model=NotificationOut)
def get_notification(
    notification_id: str,
    current: User = Depends(admin_only),
    notifications: NotificationService = Depends(get_notification_service),
):
    return notifications.get(notification_id)


@router.post("/{notification_id}/schedule", response_model=NotificationOut)
def schedule_notification(
    notification_id: str,
    payload: NotificationScheduleIn,
    current: User = Depends(admin_only),
    notifications: NotificationService = Depends(get_notification_service),
):
    return notifications.schedule(current, notification_id, payload.scheduled_date)


@router.delete("/{notification_id}", response_model=MessageOut)
def delete_notification(
    notification_id: str,
    current: User = Depends(admin_only),
    notifications: NotificationService = Depends(get_notification_service),
):
    notifications.remove(current, notification_id)
    return MessageOut(message="Marketing notification deleted successfully")
