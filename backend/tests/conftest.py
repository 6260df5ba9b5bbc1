"""
Pytest fixtures for opsengine backend tests.

Provides an app backed by a temporary SQLite file (worker threads and
the dashboard pool need their own connections), a per-test clean
database, stock roles, principal and item factories, a broadcast
recorder and token helpers.
"""

import json

import pytest

from opsengine import create_app
from opsengine.config import TestConfig
from opsengine.engine import get_engine
from opsengine.extensions import db
from opsengine.models import Employee, InventoryItem
from opsengine.services.broadcast_service import QueueSubscriber
from opsengine.services.permission_service import PrincipalContext, ensure_default_roles, get_role_by_name


@pytest.fixture(scope='session')
def app(tmp_path_factory):
    """Create application for testing."""
    path = tmp_path_factory.mktemp("db") / "opsengine-test.sqlite3"
    app = create_app({"SQLALCHEMY_DATABASE_URI": f"sqlite:///{path}"}, config_object=TestConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()
        get_engine().stop()
        db.engine.dispose()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Fresh data for each test; schema is kept."""
    # Core deletes bypass the append-only ORM guards
    for table in reversed(db.metadata.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()

    yield db.session

    db.session.rollback()


@pytest.fixture(scope='function')
def engine(app):
    return get_engine()


@pytest.fixture(scope='function')
def roles(db_session):
    """Stock roles keyed by name."""
    ensure_default_roles()
    return {name: get_role_by_name(name) for name in ("Staff", "Supervisor", "CEO", "Managing Director", "Chairwoman")}


@pytest.fixture(scope='function')
def make_principal(db_session, roles):
    """Factory: make_principal("Supervisor", "sup-1", "Sam") -> PrincipalContext."""
    def _make(role_name: str, employee_id: str | None = None, name: str | None = None, **fields) -> PrincipalContext:
        role = roles[role_name]
        employee_id = employee_id or f"{role_name.lower().replace(' ', '-')}-1"
        employee = Employee(
            id=employee_id,
            name=name or f"{role_name} User",
            email=f"{employee_id}@example.test",
            role_id=role.id,
            designation=role_name,
            department="Operations",
            status=fields.pop("status", "active"),
            **fields,
        )
        db_session.add(employee)
        db_session.commit()
        return PrincipalContext(employee=employee, role=role)
    return _make


@pytest.fixture(scope='function')
def staff(make_principal):
    return make_principal("Staff", "staff-1", "Alice")


@pytest.fixture(scope='function')
def supervisor(make_principal):
    return make_principal("Supervisor", "sup-1", "Sam")


@pytest.fixture(scope='function')
def executive(make_principal):
    return make_principal("CEO", "ceo-1", "Cora")


@pytest.fixture(scope='function')
def make_item(db_session):
    def _make(name: str = "Cement", barcode: str = "CEM-001", stock: int = 10, threshold: int = 3, unit: str = "bags") -> InventoryItem:
        item = InventoryItem(
            name=name,
            barcode=barcode,
            category="Materials",
            unit=unit,
            opening_stock=stock,
            stock=stock,
            threshold=threshold,
        )
        db_session.add(item)
        db_session.commit()
        return item
    return _make


class Recorder:
    """Hub subscriber that keeps decoded messages for assertions."""

    def __init__(self, hub):
        self.hub = hub
        self.subscriber = QueueSubscriber(maxsize=1000, label="recorder")

    def drain(self) -> list[dict]:
        messages = []
        while True:
            raw = self.subscriber.get(timeout=0)
            if raw is None:
                return messages
            messages.append(json.loads(raw))

    def topics(self) -> list[str]:
        return [m["type"] for m in self.drain()]


@pytest.fixture(scope='function')
def recorder(engine):
    rec = Recorder(engine.hub)
    engine.hub.subscribe(rec.subscriber)
    yield rec
    engine.hub.unsubscribe(rec.subscriber)
    rec.subscriber.close()


def issue_token(principal_id: str, email: str | None = None, name: str | None = None) -> str:
    return get_engine().identity.issue_token(principal_id, email=email, name=name)


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def headers_for(principal: PrincipalContext) -> dict:
    return auth_headers(issue_token(principal.id, principal.employee.email, principal.name))
