# Overview: Permission Resolver; maps principals to roles and decides capability checks.

"""
Permission Resolver

WHY: Every mutation is gated on a named capability from the closed
catalog in opsengine.permissions. A principal always resolves to exactly
one role while authenticated.

DESIGN PRINCIPLES:
- Fail closed: unknown capabilities are denied, an unresolvable role is an
  authorization failure, never a silent grant
- Full access short-circuits every check
- Role resolution is a pure function over (profile, roles) so it can be
  tested without a database
- Denials are logged; grants are not
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from ..errors import AuthorizationFailure, InvalidRequest, RoleNotFound
from ..extensions import db
from ..models import Employee, Role
from ..permissions import (
    Capability,
    DEFAULT_ROLE_PERMISSIONS,
    FULL_ACCESS_ROLES,
    ROLE_DESCRIPTIONS,
    validate_permission_code,
)

logger = logging.getLogger(__name__)


@dataclass
class PrincipalContext:
    """Authenticated caller: the employee profile and its resolved role."""
    employee: Employee
    role: Role

    @property
    def id(self) -> str:
        return self.employee.id

    @property
    def name(self) -> str:
        return self.employee.name or "System"

    def can(self, capability: str) -> bool:
        return can(self.role, capability)

    def to_dict(self) -> dict:
        return {
            "employee": self.employee.to_dict(),
            "role": self.role.to_dict(),
        }


def can(role: Role | None, capability: str) -> bool:
    """True if the role grants the capability. No role means no access."""
    if role is None:
        return False
    if role.full_access:
        return True
    if not validate_permission_code(capability):
        return False
    return bool((role.permissions or {}).get(capability, False))


def resolve_principal_role(profile, roles: Iterable[Role], default_role_name: str) -> Role:
    """
    Pick the role for a profile.

    Order: the profile's role_id, then a role named like the profile's
    designation (case-insensitive), then the default role. Raises
    AuthorizationFailure when none of them exists.
    """
    roles = list(roles)
    if profile is not None:
        role_id = getattr(profile, "role_id", None)
        if role_id is not None:
            for role in roles:
                if role.id == role_id:
                    return role

        designation = (getattr(profile, "designation", None) or "").strip().lower()
        if designation:
            for role in roles:
                if role.name.lower() == designation:
                    return role

    for role in roles:
        if role.name == default_role_name:
            return role

    raise AuthorizationFailure("No role could be resolved for this principal.")


def resolve_role(employee: Employee, default_role_name: str) -> Role:
    """Database-backed wrapper around resolve_principal_role."""
    return resolve_principal_role(employee, db.session.query(Role).all(), default_role_name)


def require_capability(principal: PrincipalContext, capability: str, message: str | None = None) -> None:
    if principal.can(capability):
        return
    logger.warning(
        "Permission denied: principal=%s role=%s capability=%s",
        principal.id,
        principal.role.name if principal.role else None,
        capability,
    )
    raise AuthorizationFailure(
        message or f"Missing capability: {capability}",
        capability=capability,
    )


def get_role_by_name(name: str) -> Role | None:
    return db.session.query(Role).filter_by(name=name).first()


def list_roles() -> list[Role]:
    return db.session.query(Role).order_by(Role.id).all()


def ensure_default_roles() -> list[Role]:
    """
    Create the stock roles if missing. Idempotent; never rewrites an
    existing role's capabilities.
    """
    created = []
    for name in FULL_ACCESS_ROLES:
        if get_role_by_name(name) is None:
            role = Role(
                name=name,
                description=ROLE_DESCRIPTIONS.get(name),
                full_access=True,
                permissions={},
            )
            db.session.add(role)
            created.append(role)

    for name, codes in DEFAULT_ROLE_PERMISSIONS.items():
        if get_role_by_name(name) is None:
            role = Role(
                name=name,
                description=ROLE_DESCRIPTIONS.get(name),
                full_access=False,
                permissions={code: True for code in codes},
            )
            db.session.add(role)
            created.append(role)

    db.session.commit()
    return created


def update_role_permissions(role_id: int, permissions: dict, *, principal: PrincipalContext, notifications) -> Role:
    """
    Merge a {capability: bool} patch into a role.

    Full-access roles are immutable. Unknown capability codes are rejected
    rather than stored.
    """
    require_capability(principal, Capability.MANAGE_ROLES)

    role = db.session.get(Role, role_id)
    if role is None:
        raise RoleNotFound(f"Role {role_id} not found")
    if role.full_access:
        raise InvalidRequest("Full-access roles cannot be modified.")
    if not isinstance(permissions, dict) or not permissions:
        raise InvalidRequest("permissions must be a non-empty object")

    unknown = sorted(code for code in permissions if not validate_permission_code(code))
    if unknown:
        raise InvalidRequest(f"Unknown capabilities: {', '.join(unknown)}")
    for code, value in permissions.items():
        if not isinstance(value, bool):
            raise InvalidRequest(f"{code} must be true or false")

    merged = dict(role.permissions or {})
    merged.update(permissions)
    # Reassign so the JSON column is flagged dirty
    role.permissions = merged
    db.session.commit()

    logger.info("Role %s permissions updated by %s", role.name, principal.id)
    notifications.notify_safely(
        "Role permissions updated",
        f"{role.name} permissions were updated by {principal.name}.",
        "info",
        {"role_id": role.id},
    )
    return role
