from datetime import datetime, timedelta, timezone

import pytest
from flask_jwt_extended import create_access_token

from crumbsy.extensions import db
from crumbsy.main import create_app
from crumbsy.models.user import User
from crumbsy.services.order_service import OrderService


class FrozenClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


DESIGN = {
    "id": "CAKE-1",
    "name": "Birthday",
    "shape": "round",
    "layers": [{"flavor": "vanilla", "color": "#fff"}],
    "buttercream": {"flavor": "vanilla", "color": "#fff"},
    "toppings": ["sprinkles"],
    "topText": "Happy Birthday",
}


@pytest.fixture
def app():
    app = create_app("testing")
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def clock():
    return FrozenClock(datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def service(app, clock):
    return OrderService(db.session, clock=clock)


def make_user(role, name):
    user = User(
        id=f"usr-{name}",
        email=f"{name}@example.com",
        username=name,
        password_hash="x",
        name=name.title(),
        role=role,
    )
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def users(app):
    return {
        "buyer": make_user("buyer", "buyer"),
        "other_buyer": make_user("buyer", "otherbuyer"),
        "baker_a": make_user("baker", "bakera"),
        "baker_b": make_user("baker", "bakerb"),
        "admin": make_user("admin", "admin"),
    }


@pytest.fixture
def auth(users):
    """Authorization headers keyed like ``users``."""
    return {
        key: {"Authorization": f"Bearer {create_access_token(identity=u.id)}"}
        for key, u in users.items()
    }


@pytest.fixture
def posted_order(service, users, clock):
    return service.create_order(
        users["buyer"].id,
        DESIGN,
        "10001",
        clock.now + timedelta(days=10),
    )
