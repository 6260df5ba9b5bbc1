"""
Permission Resolver tests.

Verifies:
- Full-access roles grant every capability
- Unknown capabilities and missing roles fail closed
- Role resolution order: role_id, designation, default role
- Role permission edits: merge semantics, immutability of full-access roles
"""

from types import SimpleNamespace

import pytest

from opsengine.errors import AuthorizationFailure, InvalidRequest, RoleNotFound
from opsengine.extensions import db
from opsengine.models import Notification, Role
from opsengine.permissions import Capability, get_all_permission_codes
from opsengine.services import permission_service
from opsengine.services.permission_service import can, resolve_principal_role


def _role(role_id, name, permissions=None, full_access=False):
    return Role(id=role_id, name=name, permissions=permissions or {}, full_access=full_access)


class TestCan:

    def test_full_access_grants_everything(self):
        ceo = _role(1, "CEO", full_access=True)
        for code in get_all_permission_codes():
            assert can(ceo, code)

    def test_explicit_grant_and_absence(self):
        staff = _role(2, "Staff", {Capability.VIEW_INVENTORY: True, Capability.MANAGE_ROLES: False})
        assert can(staff, Capability.VIEW_INVENTORY)
        assert not can(staff, Capability.MANAGE_ROLES)
        assert not can(staff, Capability.APPROVE_PURCHASE_REQUEST)

    def test_unknown_capability_denied(self):
        staff = _role(2, "Staff", {"LAUNCH_ROCKETS": True})
        assert not can(staff, "LAUNCH_ROCKETS")

    def test_no_role_denied(self):
        assert not can(None, Capability.VIEW_DASHBOARD)


class TestResolvePrincipalRole:

    roles = [
        _role(1, "CEO", full_access=True),
        _role(2, "Supervisor"),
        _role(3, "Staff"),
    ]

    def test_role_id_wins(self):
        profile = SimpleNamespace(role_id=2, designation="CEO")
        assert resolve_principal_role(profile, self.roles, "Staff").name == "Supervisor"

    def test_designation_case_insensitive(self):
        profile = SimpleNamespace(role_id=None, designation="  ceo ")
        assert resolve_principal_role(profile, self.roles, "Staff").name == "CEO"

    def test_dangling_role_id_falls_through(self):
        profile = SimpleNamespace(role_id=99, designation="Supervisor")
        assert resolve_principal_role(profile, self.roles, "Staff").name == "Supervisor"

    def test_default_role(self):
        profile = SimpleNamespace(role_id=None, designation="Forklift Driver")
        assert resolve_principal_role(profile, self.roles, "Staff").name == "Staff"

    def test_no_profile_gets_default(self):
        assert resolve_principal_role(None, self.roles, "Staff").name == "Staff"

    def test_nothing_resolvable(self):
        profile = SimpleNamespace(role_id=None, designation=None)
        with pytest.raises(AuthorizationFailure):
            resolve_principal_role(profile, [_role(1, "CEO", full_access=True)], "Staff")


class TestDefaultRoles:

    def test_seeding_is_idempotent(self, roles):
        assert permission_service.ensure_default_roles() == []
        assert {r.name for r in permission_service.list_roles()} == {
            "Chairwoman", "Managing Director", "CEO", "Supervisor", "Staff",
        }

    def test_supervisor_cannot_give_executive_approval(self, roles):
        assert can(roles["Supervisor"], Capability.SUPERVISE_PURCHASE_REQUEST)
        assert not can(roles["Supervisor"], Capability.APPROVE_PURCHASE_REQUEST)


class TestUpdateRolePermissions:

    def test_merge_keeps_unmentioned_codes(self, executive, roles, engine):
        staff_role = roles["Staff"]
        role = permission_service.update_role_permissions(
            staff_role.id,
            {Capability.MANAGE_ATTENDANCE: True, Capability.VIEW_DASHBOARD: False},
            principal=executive,
            notifications=engine.notifications,
        )
        perms = role.permission_map()
        assert perms[Capability.MANAGE_ATTENDANCE] is True
        assert perms[Capability.VIEW_DASHBOARD] is False
        assert perms[Capability.VIEW_INVENTORY] is True

        titles = [n.title for n in db.session.query(Notification).all()]
        assert "Role permissions updated" in titles

    def test_full_access_role_immutable(self, executive, roles, engine):
        with pytest.raises(InvalidRequest):
            permission_service.update_role_permissions(
                roles["CEO"].id,
                {Capability.VIEW_DASHBOARD: False},
                principal=executive,
                notifications=engine.notifications,
            )

    def test_unknown_code_rejected(self, executive, roles, engine):
        with pytest.raises(InvalidRequest):
            permission_service.update_role_permissions(
                roles["Staff"].id,
                {"LAUNCH_ROCKETS": True},
                principal=executive,
                notifications=engine.notifications,
            )

    def test_missing_role(self, executive, engine):
        with pytest.raises(RoleNotFound):
            permission_service.update_role_permissions(
                9999,
                {Capability.VIEW_DASHBOARD: True},
                principal=executive,
                notifications=engine.notifications,
            )

    def test_requires_manage_roles(self, supervisor, roles, engine):
        with pytest.raises(AuthorizationFailure) as exc:
            permission_service.update_role_permissions(
                roles["Staff"].id,
                {Capability.VIEW_DASHBOARD: True},
                principal=supervisor,
                notifications=engine.notifications,
            )
        assert exc.value.capability == Capability.MANAGE_ROLES
