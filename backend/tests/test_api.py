"""
HTTP surface tests.

Verifies:
- Protected endpoints return 401 without a valid token
- Capability gates return 403 with the missing capability
- Domain errors map to their status codes
- First-seen principals are provisioned with the default role
"""

import pytest

from conftest import auth_headers, headers_for, issue_token
from opsengine.extensions import db
from opsengine.models import Employee
from opsengine.permissions import Capability


class TestUnauthenticatedAccess:

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/auth/profile"),
            ("GET", "/api/roles"),
            ("PUT", "/api/roles/1/permissions"),
            ("GET", "/api/employees"),
            ("POST", "/api/employees"),
            ("GET", "/api/inventory"),
            ("POST", "/api/inventory/scan"),
            ("PUT", "/api/inventory/items/1/threshold"),
            ("GET", "/api/purchase-requests"),
            ("POST", "/api/purchase-requests"),
            ("POST", "/api/purchase-requests/1/review"),
            ("GET", "/api/attendance"),
            ("POST", "/api/attendance/clock"),
            ("GET", "/api/notifications"),
            ("POST", "/api/notifications/read-all"),
            ("GET", "/api/dashboard/summary"),
            ("GET", "/api/stream"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_bad_token(self, client, db_session):
        resp = client.get("/api/auth/profile", headers=auth_headers("not-a-token"))
        assert resp.status_code == 401
        assert resp.json["error"] == "authentication_failure"

    def test_inactive_employee(self, client, make_principal):
        principal = make_principal("Staff", "gone-1", "Gone", status="inactive")
        resp = client.get("/api/auth/profile", headers=headers_for(principal))
        assert resp.status_code == 401


class TestProfile:

    def test_first_login_provisions_default_role(self, client, roles):
        token = issue_token("idp-42", email="newhire@example.test")
        resp = client.get("/api/auth/profile", headers=auth_headers(token))

        assert resp.status_code == 200
        assert resp.json["employee"]["name"] == "newhire"
        assert resp.json["role"]["name"] == "Staff"
        assert resp.json["role"]["permissions"][Capability.MANAGE_ROLES] is False
        assert db.session.get(Employee, "idp-42") is not None

    def test_full_access_profile(self, client, executive):
        resp = client.get("/api/auth/profile", headers=headers_for(executive))
        assert resp.status_code == 200
        assert all(resp.json["role"]["permissions"].values())


class TestInventoryApi:

    def test_scan_and_conflict(self, client, staff, make_item):
        make_item(stock=10, threshold=3)
        headers = headers_for(staff)

        resp = client.post("/api/inventory/scan", json={"barcode": "CEM-001", "action": "OUT", "quantity": 4}, headers=headers)
        assert resp.status_code == 201
        assert resp.json["item"]["stock"] == 6
        assert resp.json["transaction"]["quantity"] == 4
        assert resp.json["snapshot"]["items"][0]["stock"] == 6

        resp = client.post("/api/inventory/scan", json={"barcode": "CEM-001", "action": "OUT", "quantity": 7}, headers=headers)
        assert resp.status_code == 409
        assert resp.json["error"] == "insufficient_stock"

    def test_scan_decimal_quantity(self, client, staff, make_item):
        make_item(stock=10, threshold=3)
        resp = client.post("/api/inventory/scan", json={"barcode": "CEM-001", "action": "OUT", "quantity": 2.5}, headers=headers_for(staff))
        assert resp.status_code == 201
        assert resp.json["item"]["stock"] == 7.5
        assert resp.json["transaction"]["quantity"] == 2.5

    def test_scan_unknown_item(self, client, staff, make_item):
        make_item()
        resp = client.post("/api/inventory/scan", json={"barcode": "ZZZ", "action": "IN", "quantity": 1}, headers=headers_for(staff))
        assert resp.status_code == 404

    def test_scan_bad_quantity(self, client, staff, make_item):
        make_item()
        resp = client.post("/api/inventory/scan", json={"barcode": "CEM-001", "action": "IN", "quantity": "lots"}, headers=headers_for(staff))
        assert resp.status_code == 400
        assert resp.json["error"] == "invalid_request"

    def test_threshold_forbidden_for_staff(self, client, staff, make_item):
        item = make_item()
        resp = client.put(f"/api/inventory/items/{item.id}/threshold", json={"threshold": 1}, headers=headers_for(staff))
        assert resp.status_code == 403
        assert resp.json["required_permission"] == Capability.CONFIGURE_THRESHOLDS

    def test_reconcile(self, client, staff, make_item):
        item = make_item()
        resp = client.get(f"/api/inventory/items/{item.id}/reconcile", headers=headers_for(staff))
        assert resp.status_code == 200
        assert resp.json["balanced"] is True


class TestPurchaseApi:

    def test_submit_and_review_flow(self, client, staff, supervisor, executive):
        resp = client.post(
            "/api/purchase-requests",
            json={"items": [{"name": "Cement", "quantity": 20}], "reason": "Slab"},
            headers=headers_for(staff),
        )
        assert resp.status_code == 201
        request_id = resp.json["request"]["id"]
        assert resp.json["request"]["code"] == "PR-0001"

        resp = client.post(f"/api/purchase-requests/{request_id}/review", json={"decision": "approve"}, headers=headers_for(supervisor))
        assert resp.status_code == 200
        assert resp.json["request"]["status"] == "pending-executive"

        resp = client.post(f"/api/purchase-requests/{request_id}/review", json={"decision": "approve"}, headers=headers_for(supervisor))
        assert resp.status_code == 403

        resp = client.post(f"/api/purchase-requests/{request_id}/review", json={"decision": "approve"}, headers=headers_for(executive))
        assert resp.status_code == 200
        assert resp.json["request"]["status"] == "approved"

        resp = client.post(f"/api/purchase-requests/{request_id}/review", json={"decision": "reject"}, headers=headers_for(executive))
        assert resp.status_code == 409
        assert resp.json["error"] == "invalid_state_transition"

    def test_empty_items(self, client, staff):
        resp = client.post("/api/purchase-requests", json={"items": []}, headers=headers_for(staff))
        assert resp.status_code == 400
        assert resp.json["message"] == "At least one item is required."

    def test_other_requesters_request_hidden(self, client, staff, make_principal):
        other = make_principal("Staff", "staff-2", "Bob")
        resp = client.post("/api/purchase-requests", json={"items": [{"name": "Sand", "quantity": 1}]}, headers=headers_for(other))
        request_id = resp.json["request"]["id"]

        assert client.get(f"/api/purchase-requests/{request_id}", headers=headers_for(staff)).status_code == 403
        assert client.get(f"/api/purchase-requests/{request_id}", headers=headers_for(other)).status_code == 200
        assert client.get("/api/purchase-requests", headers=headers_for(staff)).json["requests"] == []

    def test_missing_request(self, client, supervisor):
        resp = client.post("/api/purchase-requests/9999/review", json={"decision": "approve"}, headers=headers_for(supervisor))
        assert resp.status_code == 404


class TestAdminApi:

    def test_staff_cannot_list_roles(self, client, staff):
        resp = client.get("/api/roles", headers=headers_for(staff))
        assert resp.status_code == 403

    def test_role_update(self, client, executive, roles):
        staff_role = roles["Staff"]
        resp = client.put(
            f"/api/roles/{staff_role.id}/permissions",
            json={"permissions": {Capability.MANAGE_ATTENDANCE: True}},
            headers=headers_for(executive),
        )
        assert resp.status_code == 200
        assert resp.json["role"]["permissions"][Capability.MANAGE_ATTENDANCE] is True

    def test_create_and_deactivate_employee(self, client, executive, roles):
        resp = client.post(
            "/api/employees",
            json={"id": "emp-9", "name": "Dana", "role_id": roles["Supervisor"].id},
            headers=headers_for(executive),
        )
        assert resp.status_code == 201
        assert resp.json["employee"]["role"] == "Supervisor"

        resp = client.patch("/api/employees/emp-9/status", json={"status": "inactive"}, headers=headers_for(executive))
        assert resp.status_code == 200
        assert resp.json["employee"]["status"] == "inactive"

        token = issue_token("emp-9")
        assert client.get("/api/auth/profile", headers=auth_headers(token)).status_code == 401


class TestNotificationsApi:

    def test_list_and_mark_all(self, client, engine, staff):
        engine.notifications.create("A", "a")
        engine.notifications.create("B", "b")
        headers = headers_for(staff)

        resp = client.get("/api/notifications", headers=headers)
        assert resp.json["unread"] == 2
        assert [n["title"] for n in resp.json["notifications"]] == ["B", "A"]

        assert client.post("/api/notifications/read-all", headers=headers).json["updated"] == 2
        assert client.post("/api/notifications/read-all", headers=headers).json["updated"] == 0

    def test_mark_missing(self, client, staff):
        resp = client.post("/api/notifications/4040/read", headers=headers_for(staff))
        assert resp.status_code == 404


class TestDashboardAndHealth:

    def test_summary(self, client, staff, make_item):
        make_item()
        resp = client.get("/api/dashboard/summary", headers=headers_for(staff))
        assert resp.status_code == 200
        assert resp.json["totals"]["distinct_items"] == 1

    def test_health(self, client, db_session):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json["checks"]["database"]["status"] == "healthy"
        assert resp.json["checks"]["broadcast"]["status"] == "running"
