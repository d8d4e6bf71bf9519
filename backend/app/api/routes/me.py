from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.db.session import get_db
from app.models.user import User
from app.schemas.auth import UserOut
from app.schemas.me import MarketingPreferenceOut, MarketingPreferenceUpdateIn
from app.services.marketing import get_marketing_preference, update_marketing_preference

router = APIRouter()


@router.get("", response_model=UserOut)
def me(current: User = Depends(get_current_user)):
    return UserOut.model_validate(current)


@router.get("/marketing-preferences", response_model=MarketingPreferenceOut)
def read_marketing_preferences(current: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return get_marketing_preference(db, current)


@router.put("/marketing-preferences", response_model=MarketingPreferenceOut)
def write_marketing_preferences(
    payload: MarketingPreferenceUpdateIn,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return update_marketing_preference(db, current, payload)
