import os

# Pas de Redis en tests: le rate limiting est désactivé avant l'import de l'app
os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")

import copy
import pytest
from typing import Any, Dict, Generator, List, Optional
from uuid import uuid4
from fastapi.testclient import TestClient

from storefront.app import app as fastapi_app
from storefront.utils.security import require_admin, require_user
from storefront.payments.hdfc_client import get_gateway
from storefront.payments.errors import GatewayTimeoutError

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "/tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "/tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)


class _Result:
    def __init__(self, data):
        self.data = data


class _Query:
    """Sous-ensemble du query builder PostgREST utilisé par les repositories."""

    def __init__(self, db: "FakeSupabase", name: str):
        self.db = db
        self.name = name
        self.op = "select"
        self.payload: Any = None
        self.filters: List = []
        self.max_rows: Optional[int] = None
        self.columns: Optional[List[str]] = None
        self.orders: List = []

    def select(self, *columns):
        cols = [c.strip() for c in ",".join(columns).split(",") if c.strip()]
        self.columns = None if not cols or cols == ["*"] else cols
        return self

    def insert(self, payload):
        self.op, self.payload = "insert", payload
        return self

    def update(self, values):
        self.op, self.payload = "update", values
        return self

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def in_(self, column, values):
        allowed = set(values)
        self.filters.append(lambda row: row.get(column) in allowed)
        return self

    def limit(self, n):
        self.max_rows = n
        return self

    def order(self, column, desc=False):
        self.orders.append((column, desc))
        return self

    def execute(self):
        rows = self.db.tables.setdefault(self.name, [])
        if self.op == "insert":
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            created = []
            for item in items:
                row = copy.deepcopy(item)
                row.setdefault("id", str(uuid4()))
                rows.append(row)
                created.append(copy.deepcopy(row))
            return _Result(created)
        matched = [row for row in rows if all(f(row) for f in self.filters)]
        if self.op == "update":
            for row in matched:
                row.update(self.payload)
        for column, desc in reversed(self.orders):
            matched = sorted(matched, key=lambda row: (row.get(column) is None, row.get(column)), reverse=desc)
        if self.max_rows is not None:
            matched = matched[: self.max_rows]
        if self.op == "select" and self.columns:
            matched = [{c: row.get(c) for c in self.columns} for row in matched]
        return _Result([copy.deepcopy(row) for row in matched])


class FakeSupabase:
    def __init__(self):
        self.tables: Dict[str, List[dict]] = {}

    def table(self, name: str) -> _Query:
        return _Query(self, name)

    def rows(self, name: str) -> List[dict]:
        return self.tables.setdefault(name, [])


class FakeGateway:
    """Passerelle HDFC en mémoire: sessions créées + statuts configurables par order_id."""

    def __init__(self):
        self.sessions: List[Dict[str, Any]] = []
        self.statuses: Dict[str, Dict[str, Any]] = {}
        self.status_calls: List[str] = []
        self.session_error: Optional[Exception] = None
        self.timeout = False

    def set_status(self, order_id: str, status: str, amount: Any):
        self.statuses[order_id] = {"order_id": order_id, "status": status, "amount": amount}

    async def create_session(self, *, order_id, amount, customer_id, customer_email=None):
        if self.session_error:
            raise self.session_error
        self.sessions.append(
            {"order_id": order_id, "amount": amount, "customer_id": customer_id, "customer_email": customer_email}
        )
        return {
            "id": f"ordeh_{order_id}",
            "order_id": order_id,
            "status": "NEW",
            "payment_links": {"web": f"https://smartgatewayuat.hdfcbank.com/orders/{order_id}/payment-page"},
            "http": {"status_code": 200, "headers": {}},
        }

    async def order_status(self, order_id, customer_id=None):
        self.status_calls.append(order_id)
        if self.timeout:
            raise GatewayTimeoutError("Payment gateway timeout, please retry")
        return dict(self.statuses.get(order_id) or {"order_id": order_id, "status": "NEW", "amount": 0})

    async def aclose(self):
        return None


PRODUCTS = [
    {"id": "p1", "name": "Rose Border", "price": 40, "is_freebie": False,
     "price_update_type": "nothing", "price_percentage": 0, "price_validity_date": None},
    {"id": "p2", "name": "Peacock Motif", "price": 60, "is_freebie": False,
     "price_update_type": "nothing", "price_percentage": 0, "price_validity_date": None},
    {"id": "p3", "name": "Free Alphabet", "price": 25, "is_freebie": True,
     "price_update_type": "escalation", "price_percentage": 50, "price_validity_date": "2999-01-01T00:00:00+00:00"},
    {"id": "p4", "name": "Festive Mandala", "price": 50, "is_freebie": False,
     "price_update_type": "reduction", "price_percentage": 20, "price_validity_date": "2999-01-01T00:00:00+00:00"},
]


@pytest.fixture(autouse=True)
def fake_db(monkeypatch) -> FakeSupabase:
    """Remplace les clients Supabase par une base en mémoire (catalogue pré-rempli)."""
    db = FakeSupabase()
    db.tables["products"] = copy.deepcopy(PRODUCTS)
    db.tables["custom_orders"] = [{"id": "co-1", "user_id": "test-user", "title": "Logo", "is_paid": False, "is_deleted": False}]
    monkeypatch.setattr("storefront.infra.supabase_client.get_supabase", lambda: db)
    monkeypatch.setattr("storefront.infra.supabase_client.get_service_supabase", lambda: db)
    return db


@pytest.fixture()
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture()
def outbox(monkeypatch) -> List[Dict[str, Any]]:
    """Capture les emails envoyés (aucun appel Resend)."""
    sent: List[Dict[str, Any]] = []

    def _fake_send_email(**kwargs):
        sent.append(kwargs)
        return f"email-{len(sent)}"

    monkeypatch.setattr("storefront.utils.mailer.send_email", _fake_send_email)
    return sent


@pytest.fixture(scope="session")
def app():
    return fastapi_app


@pytest.fixture()
def client(app, gateway) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_gateway] = lambda: gateway
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.pop(get_gateway, None)


# Simuler un utilisateur authentifié pour les endpoints protégés
@pytest.fixture(autouse=True)
def _override_require_user(app):
    fake_user: Dict[str, Any] = {
        "id": "test-user",
        "email": "test@example.com",
        "role": "user",
        "metadata": {"full_name": "Test User", "phone": "+910000000000"},
    }
    app.dependency_overrides[require_user] = lambda: fake_user
    try:
        yield
    finally:
        app.dependency_overrides.pop(require_user, None)


@pytest.fixture()
def as_admin(app) -> Generator[Dict[str, Any], None, None]:
    """Simule un administrateur pour les endpoints restreints (require_admin)."""
    admin_user: Dict[str, Any] = {"id": "admin-1", "email": "admin@example.com", "role": "admin", "metadata": {"role": "admin"}}
    app.dependency_overrides[require_admin] = lambda: admin_user
    try:
        yield admin_user
    finally:
        app.dependency_overrides.pop(require_admin, None)
