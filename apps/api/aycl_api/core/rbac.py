from collections.abc import Awaitable, Callable

from fastapi import Depends

from aycl_api.core.auth import Principal, require_auth
from aycl_api.core.errors import HttpError


def require_roles(*roles: str) -> Callable[[Principal], Awaitable[Principal]]:
    async def checker(principal: Principal = Depends(require_auth)) -> Principal:
        if principal.role not in roles:
            raise HttpError(403, "FORBIDDEN", "Insufficient permissions")
        return principal

    return checker
