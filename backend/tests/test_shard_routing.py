"""Tests for per-request shard selection and shard-bound sessions."""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from pwb.core.config import settings
from pwb.core.database import Base, create_session, register_engine, using_shard
from pwb.middleware.shards import is_demo_host
from pwb.models import Message, Prop, Website


def enforcing_engine():
    """SQLite engine that enforces foreign keys like a real shard database."""
    shard_engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)

    @event.listens_for(shard_engine, "connect")
    def enable_foreign_keys(dbapi_connection, connection_record):
        dbapi_connection.execute("PRAGMA foreign_keys=ON")

    return shard_engine


@pytest.fixture
def shard_engine(engine):
    shard_engine = enforcing_engine()
    Base.metadata.create_all(shard_engine)
    register_engine("shard_1", shard_engine)
    return shard_engine


def add_to_shard(shard_engine, **attrs):
    with Session(shard_engine) as session:
        session.add(Prop(visible=True, for_sale=True, price_sale_current_cents=10_000_000,
                         price_sale_current_currency="EUR", **attrs))
        session.commit()


class TestDemoHosts:
    def test_demo_host_and_subdomains(self, monkeypatch):
        monkeypatch.setattr(settings, "DEMO_HOSTS", ["demo.propertywebbuilder.com"])

        assert is_demo_host("demo.propertywebbuilder.com") is True
        assert is_demo_host("berlin.demo.propertywebbuilder.com") is True
        assert is_demo_host("tenant-a.propertywebbuilder.com") is False

    def test_no_demo_hosts(self, monkeypatch):
        monkeypatch.setattr(settings, "DEMO_HOSTS", [])
        assert is_demo_host("demo.propertywebbuilder.com") is False


class TestShardSessions:
    """Test that tenant tables follow the selected shard."""

    def test_tenant_rows_are_written_to_the_shard(self, db, website, shard_engine):
        with using_shard("shard_1"):
            session = create_session()
            session.add(Prop(website_id=website.id, reference="SHARDED"))
            session.commit()
            session.close()

        with Session(shard_engine) as shard_session:
            assert [p.reference for p in shard_session.query(Prop)] == ["SHARDED"]
        assert db.query(Prop).count() == 0

    def test_websites_stay_in_the_default_database(self, db, website, shard_engine):
        session = create_session("shard_1")
        try:
            assert session.query(Website).filter(Website.id == website.id).one().subdomain == "tenant-a"
        finally:
            session.close()


class TestShardMiddleware:
    def test_request_uses_website_shard(self, client, db, website, make_prop, shard_engine):
        make_prop(website, reference="DEFAULT-DB")
        add_to_shard(shard_engine, website_id=website.id, reference="SHARD-DB")
        website.shard_name = "shard_1"
        db.commit()

        data = client.get("/api/public/properties").json()

        assert [p["reference"] for p in data["properties"]] == ["SHARD-DB"]

    def test_unconfigured_shard_falls_back_to_default(self, client, db, website, make_prop):
        make_prop(website, reference="DEFAULT-DB")
        website.shard_name = "shard_7"
        db.commit()

        data = client.get("/api/public/properties").json()

        assert [p["reference"] for p in data["properties"]] == ["DEFAULT-DB"]

    def test_demo_host_uses_demo_shard(self, app, db, website, make_prop, monkeypatch):
        demo_engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
        Base.metadata.create_all(demo_engine)
        register_engine("demo", demo_engine)
        monkeypatch.setattr(settings, "DEMO_HOSTS", ["tenant-a.propertywebbuilder.com"])
        monkeypatch.setattr(settings, "DEMO_SHARD_NAME", "demo")
        make_prop(website, reference="DEFAULT-DB")
        add_to_shard(demo_engine, website_id=website.id, reference="DEMO-DB")

        with TestClient(app, base_url="http://tenant-a.propertywebbuilder.com") as demo_client:
            data = demo_client.get("/api/public/properties").json()

        assert [p["reference"] for p in data["properties"]] == ["DEMO-DB"]

    def test_enquiry_on_a_sharded_website(self, client, db, website, shard_engine):
        website.shard_name = "shard_1"
        db.commit()

        with patch("pwb.api.enquiries.deliver_enquiry"):
            response = client.post("/api/public/enquiries", json={
                "enquiry": {"name": "Jane Buyer", "email": "jane@example.com", "message": "Call me"},
            })

        assert response.status_code == 201
        with Session(shard_engine) as shard_session:
            assert shard_session.query(Message).one().website_id == website.id
        assert db.query(Message).count() == 0
