# Overview: Identity verification, principal auto-provisioning and employee administration.

"""
Authentication

WHY: The engine does not issue credentials; it verifies a bearer token
against an identity provider and maps the verified principal id onto an
Employee profile and a resolved Role.

FLOW:
    token -> IdentityProvider.verify_token -> Identity(principal_id, email, name)
          -> Employee (auto-provisioned on first sight, default role)
          -> resolve_role -> PrincipalContext

Inactive employees are refused even with a valid token.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from sqlalchemy.exc import IntegrityError

from ..errors import AuthenticationFailure, AuthorizationFailure, EmployeeNotFound, InvalidRequest, RoleNotFound
from ..extensions import db
from ..models import Employee, Role
from ..permissions import Capability
from .permission_service import PrincipalContext, get_role_by_name, require_capability, resolve_role

logger = logging.getLogger(__name__)

DEFAULT_DEPARTMENT = "Operations"
EMPLOYEE_STATUSES = ("active", "inactive")


@dataclass(frozen=True)
class Identity:
    principal_id: str
    email: str | None
    name: str | None = None


class IdentityProvider:
    """Token verification boundary."""

    def verify_token(self, token: str) -> Identity:
        raise NotImplementedError


class SignedTokenIdentityProvider(IdentityProvider):
    """
    Verifies tokens signed with the app's SECRET_KEY.

    issue_token exists for local development and tests; production
    deployments put a real identity provider behind the same interface.
    """

    salt = "opsengine.identity"

    def __init__(self, secret_key: str, *, max_age: int):
        self.max_age = max_age
        self._serializer = URLSafeTimedSerializer(secret_key, salt=self.salt)

    def issue_token(self, principal_id: str, email: str | None = None, name: str | None = None) -> str:
        return self._serializer.dumps({"sub": principal_id, "email": email, "name": name})

    def verify_token(self, token: str) -> Identity:
        if not token:
            raise AuthenticationFailure("Authentication required")
        try:
            claims = self._serializer.loads(token, max_age=self.max_age)
        except SignatureExpired:
            raise AuthenticationFailure("Token expired")
        except BadSignature:
            raise AuthenticationFailure("Invalid token")

        principal_id = claims.get("sub") if isinstance(claims, dict) else None
        if not principal_id:
            raise AuthenticationFailure("Invalid token")
        return Identity(principal_id=str(principal_id), email=claims.get("email"), name=claims.get("name"))


def _display_name(identity: Identity) -> str:
    if identity.name and identity.name.strip():
        return identity.name.strip()
    if identity.email and "@" in identity.email:
        return identity.email.split("@", 1)[0]
    return "Employee"


def provision_employee(identity: Identity, default_role_name: str) -> Employee:
    """Create the profile for a first-time principal with the lowest-privilege role."""
    default_role = get_role_by_name(default_role_name)
    employee = Employee(
        id=identity.principal_id,
        name=_display_name(identity),
        email=identity.email,
        role_id=default_role.id if default_role else None,
        designation=default_role_name,
        department=DEFAULT_DEPARTMENT,
        status="active",
    )
    db.session.add(employee)
    try:
        db.session.commit()
    except IntegrityError:
        # Another request provisioned the same principal first
        db.session.rollback()
        employee = db.session.get(Employee, identity.principal_id)
        if employee is None:
            raise
        return employee

    logger.info("Provisioned employee %s (%s)", employee.id, employee.email)
    return employee


def authenticate(token: str, provider: IdentityProvider, *, default_role_name: str) -> PrincipalContext:
    identity = provider.verify_token(token)

    employee = db.session.get(Employee, identity.principal_id)
    if employee is None:
        employee = provision_employee(identity, default_role_name)

    if not employee.is_active:
        logger.info("Refused inactive employee %s", employee.id)
        raise AuthenticationFailure("Employee account is inactive")

    role = resolve_role(employee, default_role_name)
    return PrincipalContext(employee=employee, role=role)


def list_employees() -> list[Employee]:
    return db.session.query(Employee).order_by(Employee.name).all()


def get_employee(employee_id: str) -> Employee:
    employee = db.session.get(Employee, employee_id)
    if employee is None:
        raise EmployeeNotFound(f"Employee {employee_id} not found")
    return employee


def create_employee(
    *,
    principal: PrincipalContext,
    notifications,
    name: str,
    email: str | None = None,
    role_id: int | None = None,
    designation: str | None = None,
    department: str | None = None,
    employee_id: str | None = None,
) -> Employee:
    """
    Administrator-side provisioning. The id should be the identity
    provider's user id; a random one is generated when omitted.
    """
    require_capability(principal, Capability.MANAGE_ROLES)

    name = (name or "").strip()
    if not name:
        raise InvalidRequest("name is required")

    role = None
    if role_id is not None:
        role = db.session.get(Role, role_id)
        if role is None:
            raise RoleNotFound(f"Role {role_id} not found")

    employee_id = (employee_id or "").strip() or uuid.uuid4().hex
    if db.session.get(Employee, employee_id) is not None:
        raise InvalidRequest(f"Employee {employee_id} already exists")

    employee = Employee(
        id=employee_id,
        name=name,
        email=(email or "").strip() or None,
        role_id=role.id if role else None,
        designation=(designation or "").strip() or (role.name if role else None),
        department=(department or "").strip() or DEFAULT_DEPARTMENT,
        status="active",
    )
    db.session.add(employee)
    db.session.commit()

    notifications.notify_safely(
        "New employee added",
        f"{employee.name} joined as {employee.designation or 'Staff'}.",
        "success",
        {"employee_id": employee.id},
    )
    return employee


def set_employee_status(employee_id: str, status: str, *, principal: PrincipalContext) -> Employee:
    require_capability(principal, Capability.MANAGE_ROLES)
    if status not in EMPLOYEE_STATUSES:
        raise InvalidRequest(f"status must be one of: {', '.join(EMPLOYEE_STATUSES)}")
    employee = get_employee(employee_id)
    if employee.id == principal.id and status == "inactive":
        raise AuthorizationFailure("You cannot deactivate your own account.")
    employee.status = status
    db.session.commit()
    return employee
