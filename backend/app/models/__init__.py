from app.models.user import User, UserRole
from app.models.marketing_preference import UserMarketingPreference
from app.models.audit_log import AuditLog
from app.models.marketing_notification import MarketingNotification, MarketingCategory, NotificationTiming
