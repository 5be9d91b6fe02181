"""Route guards based on the caller's access role."""

from functools import wraps
from typing import Callable

from app.exceptions import ForbiddenException, UnauthorizedException
from app.models.user import Role
from app.utils.tenant_context import get_caller


def require_role(*allowed_roles: Role | str) -> Callable:
    """Reject callers that are anonymous (401) or hold another role (403).

    Usage:
        @router.post("/execute")
        @require_role(Role.SCHOOL_ADMIN)
        async def execute_import(...):
            ...

    SUPER_ADMIN passes every guard.
    """
    allowed = {Role(role).value for role in allowed_roles} | {Role.SUPER_ADMIN.value}

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            caller = get_caller()
            if caller.user_id is None:
                raise UnauthorizedException()
            if caller.role not in allowed:
                raise ForbiddenException()
            return await func(*args, **kwargs)

        return wrapper

    return decorator
