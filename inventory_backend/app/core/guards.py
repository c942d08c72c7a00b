"""
Security guards for role-based and ownership-based access control.

Role checks come first; ownership checks are layered on top per route
through ``Policy`` objects.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, FrozenSet, Iterable, Optional
from fastapi import Depends
from inventory_backend.app.core.dependencies import Actor, get_current_user
from inventory_backend.app.core.exceptions import ForbiddenError
from inventory_backend.app.models.enums import Role, PRIVILEGED_ROLES


def role_allows(role: Role, allowed_roles: Iterable[Role]) -> bool:
    """
    Exhaustive role check.

    Every member of ``Role`` is matched explicitly so that adding a role
    without deciding its access fails loudly.
    """
    allowed = frozenset(allowed_roles)
    if role is Role.ADMIN:
        return Role.ADMIN in allowed
    if role is Role.MANAGER:
        return Role.MANAGER in allowed
    if role is Role.EMPLOYEE:
        return Role.EMPLOYEE in allowed
    if role is Role.CUSTOMER:
        return Role.CUSTOMER in allowed
    raise ValueError(f"Unhandled role: {role!r}")


def ensure_role(actor: Actor, allowed_roles: Iterable[Role]) -> None:
    allowed = sorted(r.value for r in allowed_roles)
    if not role_allows(actor.role, allowed_roles):
        plural = "one of these roles" if len(allowed) > 1 else "the role"
        raise ForbiddenError(
            f"Access denied. This action requires {plural}: {', '.join(allowed)}",
            details={"required_roles": allowed, "user_role": actor.role.value}
        )


def require_role(allowed_roles: Iterable[Role]):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.get("/reports/sales")
        async def sales(actor: Actor = Depends(require_role(PRIVILEGED_ROLES))):
            ...
    """
    allowed = frozenset(allowed_roles)

    async def role_checker(actor: Actor = Depends(get_current_user)) -> Actor:
        ensure_role(actor, allowed)
        return actor

    return role_checker


@dataclass(frozen=True)
class Policy:
    """
    Per-route access policy.

    ``resolve_owner`` maps a loaded resource to its owning user id, or None
    when no ownership check applies. Actors in ``bypass_roles`` skip the
    ownership comparison.

    Usage:
        order_read_policy = Policy(
            allowed_roles=ALL_ROLES,
            resolve_owner=lambda order: order.customer_id,
            bypass_roles=STAFF_ROLES,
        )
        order_read_policy.authorize(actor, order)
    """
    allowed_roles: FrozenSet[Role]
    resolve_owner: Callable[[Any], Optional[int]] = lambda resource: None
    bypass_roles: FrozenSet[Role] = field(default=PRIVILEGED_ROLES)
    resource_name: str = "resource"

    def check_role(self, actor: Actor) -> None:
        ensure_role(actor, self.allowed_roles)

    def check_owner(self, actor: Actor, resource: Any) -> None:
        if actor.role in self.bypass_roles:
            return
        owner_id = self.resolve_owner(resource) if resource is not None else None
        if owner_id is None:
            return
        if owner_id != actor.user_id:
            raise ForbiddenError(
                f"Access denied. You can only access your own {self.resource_name}."
            )

    def authorize(self, actor: Actor, resource: Any = None) -> None:
        """Role check, then ownership check; raises ForbiddenError on failure."""
        self.check_role(actor)
        self.check_owner(actor, resource)
