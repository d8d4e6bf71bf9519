from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from app.models.marketing_notification import MarketingCategory, NotificationTiming


class NotificationCreateIn(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1, max_length=5000)
    category: MarketingCategory
    timing: NotificationTiming = NotificationTiming.IMMEDIATE
    scheduled_date: datetime | None = Field(
        default=None, validation_alias=AliasChoices("scheduled_date", "scheduledDate")
    )
    recipients: list[str] | None = None
    metadata: dict | None = None


class NotificationScheduleIn(BaseModel):
    scheduled_date: datetime = Field(..., validation_alias=AliasChoices("scheduled_date", "scheduledDate"))


class NotificationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    content: str
    category: MarketingCategory
    timing: NotificationTiming
    scheduled_date: datetime | None = None
    recipients: list[str] = Field(default_factory=list)
    metadata: dict = Field(default_factory=dict, validation_alias=AliasChoices("meta", "metadata"))
    sent: bool = False
    sent_at: datetime | None = None
    success_count: int = 0
    failure_count: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, value) -> str:
        return str(value)


class PaginationOut(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class NotificationListOut(BaseModel):
    notifications: list[NotificationOut]
    pagination: PaginationOut
