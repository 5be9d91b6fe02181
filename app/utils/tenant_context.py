"""Request-scoped caller identity.

The auth middleware resolves the caller once per request; services read the
tenant and user from here instead of threading them through every call.
"""

import contextvars
import uuid
from dataclasses import dataclass

from app.exceptions import TenantContextError, UserContextError


@dataclass(frozen=True)
class CallerContext:
    """Who is calling, and on behalf of which school."""

    user_id: uuid.UUID | None = None
    tenant_id: uuid.UUID | None = None
    role: str | None = None


_EMPTY = CallerContext()

_caller: contextvars.ContextVar[CallerContext] = contextvars.ContextVar("caller", default=_EMPTY)


def set_caller(
    user_id: uuid.UUID | None,
    tenant_id: uuid.UUID | None = None,
    role: str | None = None,
) -> None:
    """Bind the caller for the rest of the current context."""
    _caller.set(CallerContext(user_id=user_id, tenant_id=tenant_id, role=role))


def get_caller() -> CallerContext:
    return _caller.get()


def get_tenant_id() -> uuid.UUID:
    """Get the caller's tenant.

    Raises:
        TenantContextError: If no tenant is bound
    """
    tenant_id = _caller.get().tenant_id
    if tenant_id is None:
        raise TenantContextError("Tenant context is not set")
    return tenant_id


def get_current_user_id() -> uuid.UUID:
    """Get the caller's user ID.

    Raises:
        UserContextError: If no user is bound
    """
    user_id = _caller.get().user_id
    if user_id is None:
        raise UserContextError("User context is not set")
    return user_id


def get_current_user_id_or_none() -> uuid.UUID | None:
    return _caller.get().user_id


def clear_all_context() -> None:
    """Forget the caller. Called at both ends of every request."""
    _caller.set(_EMPTY)
