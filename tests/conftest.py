from datetime import timedelta

import pytest

from labgiga import create_app
from labgiga.config import TestConfig
from labgiga.extensions import db
from labgiga.models import Borrowing, BorrowingItem, Item
from labgiga.models.status import Role
from labgiga.services.auth_service import AuthService
from labgiga.utils.dates import utcnow


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_header(app):
    def _header(user):
        access, _refresh = AuthService.issue_tokens(user)
        return {"Authorization": f"Bearer {access}"}
    return _header


@pytest.fixture
def admin(app):
    return AuthService.register("admin@lab.test", "secret123", "Lab Admin", role=Role.ADMIN.value)


@pytest.fixture
def member(app):
    return AuthService.register("member@lab.test", "secret123", "Budi", nrp="5025211001")


@pytest.fixture
def other_member(app):
    return AuthService.register("other@lab.test", "secret123", "Sari", nrp="5025211002")


@pytest.fixture
def make_item(app):
    def _make(name="Oscilloscope", stock=5, total_stock=5, **kw):
        item = Item(name=name, description="", stock=stock, total_stock=total_stock, **kw)
        db.session.add(item)
        db.session.commit()
        return item
    return _make


@pytest.fixture
def make_borrowing(app, member):
    """Inserts a borrowing directly in the given status, bypassing the service."""
    def _make(lines, status="PENDING", user=None, return_in_days=5, borrowed_days_ago=1):
        now = utcnow()
        b = Borrowing(
            user_id=(user or member).id,
            borrow_date=now - timedelta(days=borrowed_days_ago),
            return_date=now + timedelta(days=return_in_days),
            reason="Praktikum",
            status=status,
            items=[BorrowingItem(item_id=item.id, quantity=qty) for item, qty in lines],
        )
        db.session.add(b)
        db.session.commit()
        return b
    return _make
