"""Authentication context extraction and RBAC guard utilities."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from fastapi import Depends, Header, HTTPException, status

from app.core.config import Settings, get_app_settings


class AppRole(str, Enum):
    """Application role names carried by the identity proxy."""

    ADMIN = "ADMIN"
    EXPENSE_ADMIN = "EXPENSE_ADMIN"
    USER = "USER"
    GUEST = "GUEST"


@dataclass(frozen=True)
class RequestUserContext:
    """Authenticated request actor resolved from trusted headers."""

    username: str
    roles: tuple[AppRole, ...]

    @property
    def is_admin(self) -> bool:
        return AppRole.ADMIN in self.roles

    @property
    def scope_username(self) -> str | None:
        """Username that record fetches are restricted to; ``None`` for admins."""

        return None if self.is_admin else self.username


def parse_roles(raw: str | list[str] | tuple[str, ...] | None) -> tuple[AppRole, ...]:
    """Parse role names, ignoring unknown entries and duplicates."""

    if raw is None:
        return ()
    items = raw.split(",") if isinstance(raw, str) else list(raw)
    known = {role.value: role for role in AppRole}
    roles: list[AppRole] = []
    for item in items:
        role = known.get(item.strip().upper())
        if role is not None and role not in roles:
            roles.append(role)
    return tuple(roles)


def get_current_user_context(
    x_username: str | None = Header(default=None, alias="X-USERNAME"),
    x_roles: str | None = Header(default=None, alias="X-ROLES"),
    settings: Settings = Depends(get_app_settings),
) -> RequestUserContext:
    """Resolve the request user from proxy headers.

    Header strategy:
    - Trusted ``X-USERNAME`` / ``X-ROLES`` headers from the proxy or test clients.
    - Without headers, the configured development principal when enabled.
    """

    if x_username and x_username.strip():
        return RequestUserContext(username=x_username.strip(), roles=parse_roles(x_roles))

    if settings.auth_allow_dev_principal:
        return RequestUserContext(
            username=settings.auth_dev_username.strip(),
            roles=parse_roles(settings.auth_dev_roles),
        )

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Missing identity headers. Expected X-USERNAME or enable development principal fallback.",
    )


def has_role(context: RequestUserContext, allowed_roles: set[AppRole]) -> bool:
    """Check whether user has any of the allowed roles."""

    return any(role in allowed_roles for role in context.roles)


def require_roles(*roles: AppRole):
    """Dependency factory requiring at least one provided role."""

    allowed = set(roles)

    def dependency(context: RequestUserContext = Depends(get_current_user_context)) -> RequestUserContext:
        if not has_role(context, allowed):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient role permissions for this operation.",
            )
        return context

    return dependency
