from __future__ import annotations

from ..extensions import db
from ..permissions import full_permission_map, get_all_permission_codes
from ..time_utils import to_utc_z


class Role(db.Model):
    """
    Named capability set.

    A role either carries an explicit {capability: bool} map or the
    full_access flag, which implies every capability in the catalog.
    Full-access roles are immutable once flagged.
    """
    __tablename__ = "roles"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False, unique=True, index=True)
    description = db.Column(db.String(255), nullable=True)
    full_access = db.Column(db.Boolean, nullable=False, default=False)
    permissions = db.Column(db.JSON, nullable=False, default=dict)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def permission_map(self) -> dict[str, bool]:
        if self.full_access:
            return full_permission_map()
        stored = self.permissions or {}
        return {code: bool(stored.get(code, False)) for code in get_all_permission_codes()}

    def __repr__(self) -> str:
        return f"<Role {self.name}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "full_access": self.full_access,
            "permissions": self.permission_map(),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Employee(db.Model):
    """
    Principal profile. The id is the identity provider's user id.
    """
    __tablename__ = "employees"

    id = db.Column(db.String(64), primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), nullable=True, index=True)
    role_id = db.Column(db.Integer, db.ForeignKey("roles.id"), nullable=True, index=True)

    # Free-text job title; doubles as the role-name fallback
    designation = db.Column(db.String(64), nullable=True)
    department = db.Column(db.String(64), nullable=True)

    status = db.Column(db.String(16), nullable=False, default="active")  # active, inactive

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    role = db.relationship("Role", backref=db.backref("employees", lazy=True))

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role_id": self.role_id,
            "role": self.role.name if self.role else None,
            "designation": self.designation,
            "department": self.department,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
        }
