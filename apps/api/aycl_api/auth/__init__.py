from aycl_api.auth.models import User, UserSession

__all__ = ["User", "UserSession"]
