"""Shared fixtures: in-memory database, fake Redis and a host-aware API client."""

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from pwb.core import cache
from pwb.core.config import settings
from pwb.core.database import Base, create_session, register_engine, reset_engines
from pwb.core.tenant import clear_current_website
from pwb.models import (
    Agency,
    Prop,
    User,
    UserMembership,
    UserSession,
    Website,
)


class FakeRedis:
    """Dict-backed stand-in for the handful of Redis calls the app makes."""

    def __init__(self):
        self.store = {}

    def get(self, key):
        return self.store.get(key)

    def set(self, key, value, ex=None):
        self.store[key] = value
        return True

    def delete(self, *keys):
        return sum(1 for key in keys if self.store.pop(key, None) is not None)

    def ping(self):
        return True


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    register_engine("default", engine)
    yield engine
    Base.metadata.drop_all(engine)
    reset_engines()


@pytest.fixture(autouse=True)
def fake_redis(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(cache, "get_redis", lambda: fake)
    return fake


@pytest.fixture(autouse=True)
def reset_tenant():
    yield
    clear_current_website()


@pytest.fixture
def db(engine):
    session = create_session("default")
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def website(db):
    website = Website(
        subdomain="tenant-a",
        company_display_name="Tenant A Realty",
        default_currency="EUR",
        available_currencies=["USD"],
        supported_locales=["en", "es"],
        provisioning_state="live",
        provisioning_completed_at=datetime.utcnow(),
    )
    db.add(website)
    db.commit()
    return website


@pytest.fixture
def other_website(db):
    website = Website(subdomain="tenant-b", company_display_name="Tenant B Homes", provisioning_state="live")
    db.add(website)
    db.commit()
    return website


@pytest.fixture
def agency(db, website):
    agency = Agency(
        website_id=website.id,
        display_name="Tenant A Realty",
        email_primary="office@tenant-a.test",
        email_for_general_contact_form="general@tenant-a.test",
        email_for_property_contact_form="listings@tenant-a.test",
        phone_number_primary="+34 600 000 000",
    )
    db.add(agency)
    db.commit()
    return agency


def build_prop(db, website, **attrs):
    values = dict(
        website_id=website.id,
        title="Sea view apartment",
        reference="REF-1",
        visible=True,
        for_sale=True,
        price_sale_current_cents=25_000_000,
        price_sale_current_currency="EUR",
        count_bedrooms=2,
        count_bathrooms=1,
        constructed_area=80,
        prop_type_key="types.apartment",
        city="Marbella",
        latitude=36.51,
        longitude=-4.88,
    )
    values.update(attrs)
    prop = Prop(**values)
    db.add(prop)
    db.commit()
    return prop


@pytest.fixture
def prop(db, website):
    return build_prop(db, website)


@pytest.fixture
def make_prop(db):
    def make(website, **attrs):
        return build_prop(db, website, **attrs)
    return make


@pytest.fixture
def admin_user(db, website):
    user = User(email="owner@tenant-a.com", first_names="Olivia", last_names="Owner")
    db.add(user)
    db.flush()
    db.add(UserMembership(user_id=user.id, website_id=website.id, role="owner", active=True))
    db.add(UserSession(user_id=user.id, token="admin-session", expires_at=datetime.utcnow() + timedelta(days=1)))
    db.commit()
    return user


@pytest.fixture
def platform_admin(db):
    user = User(email="ops@propertywebbuilder.com", is_superuser=True)
    db.add(user)
    db.flush()
    db.add(UserSession(user_id=user.id, token="platform-session", expires_at=datetime.utcnow() + timedelta(days=1)))
    db.commit()
    return user


@pytest.fixture
def app(engine):
    from pwb.main import app

    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app, website):
    """Client addressed to the test website's platform subdomain."""
    with TestClient(app, base_url=f"http://{website.subdomain}.propertywebbuilder.com") as client:
        yield client


@pytest.fixture
def admin_client(client, admin_user):
    client.cookies.set(settings.SESSION_COOKIE_NAME, "admin-session.signature")
    return client


@pytest.fixture
def platform_client(app, platform_admin):
    with TestClient(app, base_url="http://propertywebbuilder.com") as client:
        client.cookies.set(settings.SESSION_COOKIE_NAME, "platform-session")
        yield client
