from aycl_api.activities.models import Activity
from aycl_api.activities.schemas import ActivityCreate, ActivityPage, ActivityRead, ActivityUpdate

__all__ = ["Activity", "ActivityCreate", "ActivityPage", "ActivityRead", "ActivityUpdate"]
