from aycl_api.notifications.models import Notification
from aycl_api.notifications.schemas import NotificationBulkUpdate, NotificationList, NotificationRead

__all__ = ["Notification", "NotificationBulkUpdate", "NotificationList", "NotificationRead"]
