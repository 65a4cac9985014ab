from aycl_api.models.audit import AuditLog
from aycl_api.activities.models import Activity
from aycl_api.auth.models import User, UserSession
from aycl_api.notifications.models import Notification
from aycl_api.referrals.models import Referral
from aycl_api.webhooks.models import Webhook

__all__ = [
	"Activity",
	"AuditLog",
	"Notification",
	"Referral",
	"User",
	"UserSession",
	"Webhook",
]
