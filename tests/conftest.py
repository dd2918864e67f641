import random

import pytest

from app import create_app, get_services
from app.models import db
from server.config import MS_PER_HOUR

T0 = 1_700_000_000_000


class FakeClock:
    """Deterministic epoch-millisecond clock."""

    def __init__(self, start: int = T0):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, hours: float = 0, ms: int = 0) -> int:
        self.now += int(hours * MS_PER_HOUR) + ms
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def app(clock):
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite://",
        "AUTO_CREATE_TABLES": True,
        "CLOCK": clock,
        "RNG": random.Random(7),
    })
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def services(app):
    return get_services()
