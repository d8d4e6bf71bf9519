from __future__ import annotations

import sqlalchemy as sa
from sqlalchemy.orm import Session

from app.models.marketing_preference import UserMarketingPreference
from app.models.user import User
from app.schemas.me import MarketingPreferenceOut, MarketingPreferenceUpdateIn


def _get_row(db: Session, user_id) -> UserMarketingPreference | None:
    return db.execute(
        sa.select(UserMarketingPreference).where(UserMarketingPreference.user_id == user_id)
    ).scalar_one_or_none()


def get_marketing_preference(db: Session, user: User) -> MarketingPreferenceOut:
    row = _get_row(db, user.id)
    if row is None:
        # First access: every category on, email only.
        row = UserMarketingPreference(user_id=user.id, email=user.email)
        db.add(row)
        db.commit()
        db.refresh(row)
    return MarketingPreferenceOut.model_validate(row)


def update_marketing_preference(db: Session, user: User, payload: MarketingPreferenceUpdateIn) -> MarketingPreferenceOut:
    changes = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}
    row = _get_row(db, user.id)
    if row is None:
        row = UserMarketingPreference(user_id=user.id, email=user.email, **changes)
        db.add(row)
    else:
        row.email = user.email
        for key, value in changes.items():
            setattr(row, key, value)
    db.commit()
    db.refresh(row)
    return MarketingPreferenceOut.model_validate(row)
