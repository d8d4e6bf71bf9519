"""Admin-managed marketing notifications.

Records are drafted and scheduled here; fan-out to subscribers is not part of
this service.
"""
from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Callable
from uuid import UUID

import sqlalchemy as sa
from sqlalchemy.orm import Session

from app.core.errors import BadRequest, NotFound, ValidationFailure
from app.core.security import as_utc, now_utc
from app.models.marketing_notification import MarketingNotification, NotificationTiming
from app.models.user import User
from app.schemas.notifications import (
    NotificationCreateIn,
    NotificationListOut,
    NotificationOut,
    PaginationOut,
)
from app.services.audit import audit

logger = logging.getLogger(__name__)

NOT_FOUND = "Marketing notification not found"
ALREADY_SENT = "Notification has already been sent"


class NotificationService:
    def __init__(self, db: Session, clock: Callable[[], datetime] = now_utc):
        self.db = db
        self.clock = clock

    def create(self, actor: User, payload: NotificationCreateIn) -> NotificationOut:
        scheduled_date = None
        if payload.timing is NotificationTiming.SCHEDULED:
            if payload.scheduled_date is None:
                raise ValidationFailure("scheduled_date is required for scheduled notifications")
            scheduled_date = self._future(payload.scheduled_date)

        row = MarketingNotification(
            title=payload.title,
            content=payload.content,
            category=payload.category.value,
            timing=payload.timing.value,
            scheduled_date=scheduled_date,
            recipients=payload.recipients or [],
            meta=payload.metadata or {},
            created_by_user_id=actor.id,
            created_at=self.clock(),
        )
        self.db.add(row)
        self.db.flush()
        audit(
            self.db,
            actor.id,
            "marketing_notification",
            str(row.id),
            "notification_created",
            {"category": row.category, "timing": row.timing},
        )
        self.db.commit()
        self.db.refresh(row)
        logger.info("Marketing notification %s created by %s", row.id, actor.id)
        return NotificationOut.model_validate(row)

    def list(self, page: int = 1, limit: int = 10) -> NotificationListOut:
        rows = self.db.execute(
            sa.select(MarketingNotification)
            .order_by(MarketingNotification.created_at.desc(), MarketingNotification.id)
            .offset((page - 1) * limit)
            .limit(limit)
        ).scalars()
        total = int(self.db.execute(sa.select(sa.func.count()).select_from(MarketingNotification)).scalar_one())
        return NotificationListOut(
            notifications=[NotificationOut.model_validate(r) for r in rows],
            pagination=PaginationOut(page=page, limit=limit, total=total, total_pages=math.ceil(total / limit)),
        )

    def get(self, notification_id: str) -> NotificationOut:
        return NotificationOut.model_validate(self._get(notification_id))

    def schedule(self, actor: User, notification_id: str, scheduled_date: datetime) -> NotificationOut:
        row = self._get(notification_id)
        if row.sent:
            raise BadRequest(ALREADY_SENT)
        row.timing = NotificationTiming.SCHEDULED.value
        row.scheduled_date = self._future(scheduled_date)
        audit(
            self.db,
            actor.id,
            "marketing_notification",
            str(row.id),
            "notification_scheduled",
            {"scheduled_date": row.scheduled_date.isoformat()},
        )
        self.db.commit()
        self.db.refresh(row)
        logger.info("Marketing notification %s scheduled for %s", row.id, row.scheduled_date)
        return NotificationOut.model_validate(row)

    def remove(self, actor: User, notification_id: str) -> None:
        row = self._get(notification_id)
        audit(self.db, actor.id, "marketing_notification", str(row.id), "notification_deleted", {})
        self.db.delete(row)
        self.db.commit()
        logger.info("Marketing notification %s deleted by %s", notification_id, actor.id)

    def _future(self, value: datetime) -> datetime:
        value = as_utc(value)
        if value <= self.clock():
            raise ValidationFailure("Scheduled date must be in the future")
        return value

    def _get(self, notification_id: str) -> MarketingNotification:
        try:
            nid = UUID(str(notification_id))
        except ValueError:
            raise NotFound(NOT_FOUND)
        row = self.db.get(MarketingNotification, nid)
        if row is None:
            raise NotFound(NOT_FOUND)
        return row
