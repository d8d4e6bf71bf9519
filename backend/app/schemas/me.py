from pydantic import BaseModel, ConfigDict


class MarketingPreferenceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    email: str
    subscribed_to_promotional: bool
    subscribed_to_newsletter: bool
    subscribed_to_product_updates: bool
    subscribed_to_events: bool
    prefer_email: bool
    prefer_sms: bool
    prefer_push: bool


class MarketingPreferenceUpdateIn(BaseModel):
    subscribed_to_promotional: bool | None = None
    subscribed_to_newsletter: bool | None = None
    subscribed_to_product_updates: bool | None = None
    subscribed_to_events: bool | None = None
    prefer_email: bool | None = None
    prefer_sms: bool | None = None
    prefer_push: bool | None = None
