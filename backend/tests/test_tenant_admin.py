"""Tests for platform administration routes, shards and exchange rates."""

import json
from datetime import datetime, timedelta
from unittest.mock import Mock

import pytest
import requests
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from pwb.core.database import Base, register_engine
from pwb.core.exceptions import RateFetchError
from pwb.models import ShardAuditLog, Subdomain, Website
from pwb.services import exchange_rates
from pwb.services.exchange_rates import (
    ECB_CACHE_KEY,
    build_rates,
    convert,
    get_rate,
    parse_ecb_xml,
    rates_stale,
    update_all_rates,
    update_rates,
)
from pwb.services.shards import HealthStatus, ShardRegistry, ShardService, health_check

ECB_XML = """<?xml version="1.0" encoding="UTF-8"?>
<gesmes:Envelope xmlns:gesmes="http://www.gesmes.org/xml/2002-08-01" xmlns="http://www.ecb.int/vocabulary/2002-08-01/eurofxref">
  <gesmes:subject>Reference rates</gesmes:subject>
  <Cube>
    <Cube time="2024-03-01">
      <Cube currency="USD" rate="1.0812"/>
      <Cube currency="GBP" rate="0.8554"/>
      <Cube currency="JPY" rate="162.47"/>
    </Cube>
  </Cube>
</gesmes:Envelope>
"""

EUR_RATES = {"EUR": 1.0, "USD": 1.1, "GBP": 0.85}


@pytest.fixture
def second_shard(engine):
    shard_engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(shard_engine)
    register_engine("shard_1", shard_engine)
    return "shard_1"


def healthy(shard):
    return HealthStatus(shard, True, datetime.utcnow(), avg_query_ms=1.0)


class TestTenantAdminAccess:
    def test_requires_session(self, app, engine):
        with TestClient(app, base_url="http://propertywebbuilder.com") as client:
            assert client.get("/api/tenant_admin/websites").status_code == 401

    def test_requires_superuser(self, platform_client, db, platform_admin):
        platform_admin.is_superuser = False
        db.commit()

        response = platform_client.get("/api/tenant_admin/websites")
        assert response.status_code == 403


class TestWebsiteAdministration:
    """Test listing websites and firing lifecycle events."""

    def test_list_and_filter(self, platform_client, db, website, other_website):
        other_website.provisioning_state = "suspended"
        db.commit()

        everything = platform_client.get("/api/tenant_admin/websites").json()
        live = platform_client.get("/api/tenant_admin/websites", params={"state": "live"}).json()

        assert [w["subdomain"] for w in everything] == ["tenant-a", "tenant-b"]
        assert [w["subdomain"] for w in live] == ["tenant-a"]
        assert live[0]["progress"] == 100

    def test_detail(self, platform_client, website):
        data = platform_client.get(f"/api/tenant_admin/websites/{website.id}").json()

        assert data["state"] == "live"
        assert data["checklist"]["owner"] == {"complete": False, "required": True}
        assert "owner membership" in data["missing_items"]

    def test_suspend_then_reactivate(self, platform_client, db, website, fake_redis):
        fake_redis.set("tenant:host:tenant-a.propertywebbuilder.com", "{}")

        suspended = platform_client.post(f"/api/tenant_admin/websites/{website.id}/events/suspend")
        assert suspended.json()["provisioning_state"] == "suspended"
        assert fake_redis.get("tenant:host:tenant-a.propertywebbuilder.com") is None

        reactivated = platform_client.post(f"/api/tenant_admin/websites/{website.id}/events/reactivate")
        assert reactivated.json()["provisioning_state"] == "live"

    def test_invalid_transition(self, platform_client, website):
        response = platform_client.post(f"/api/tenant_admin/websites/{website.id}/events/terminate")

        assert response.status_code == 422
        assert response.json()["detail"] == "Event 'terminate' cannot transition from 'live'"

    def test_guarded_transition(self, platform_client, db, website):
        website.provisioning_state = "ready"
        db.commit()

        response = platform_client.post(f"/api/tenant_admin/websites/{website.id}/events/go_live")

        assert response.status_code == 422
        assert "can_go_live is false" in response.json()["detail"]

    def test_unknown_event(self, platform_client, website):
        response = platform_client.post(f"/api/tenant_admin/websites/{website.id}/events/fail_provisioning")
        assert response.status_code == 404


class TestShards:
    """Test the shard registry and website shard assignment."""

    def test_registry(self, engine, second_shard):
        assert ShardRegistry.logical_shards() == ["default", "shard_1"]
        assert ShardRegistry.configured("shard_1") is True
        assert ShardRegistry.configured("shard_9") is False

    def test_health_check(self, engine, second_shard):
        status = health_check("shard_1")

        assert status.connection_status is True
        assert status.healthy is True
        assert status.status_label == "Healthy"

    def test_health_check_of_unknown_shard(self, engine):
        status = health_check("shard_9")

        assert status.connection_status is False
        assert status.to_dict()["error_message"] == "Shard not configured"

    def test_slow_shard_label(self):
        status = HealthStatus("default", True, datetime.utcnow(), avg_query_ms=750)
        assert status.status_label == "Slow"
        assert status.healthy is True

    def test_assign_shard(self, db, website, second_shard):
        result = ShardService(db, health_checker=healthy).assign_shard(website, "shard_1", "ops@example.com", "Growth")

        assert result.success is True
        assert result.data == {"old_shard": "default", "new_shard": "shard_1", "website_id": website.id}
        assert website.shard_name == "shard_1"
        entry = db.query(ShardAuditLog).one()
        assert (entry.old_shard_name, entry.new_shard_name, entry.notes) == ("default", "shard_1", "Growth")

    def test_assign_unknown_shard(self, db, website):
        result = ShardService(db, health_checker=healthy).assign_shard(website, "shard_9", "ops@example.com")

        assert result.failure is True
        assert result.error == "Invalid shard: shard_9. Available shards: default"

    def test_assign_same_shard(self, db, website):
        result = ShardService(db, health_checker=healthy).assign_shard(website, "default", "ops@example.com")
        assert result.error == "Website is already on shard 'default'"

    def test_assign_unhealthy_shard(self, db, website, second_shard):
        unhealthy = Mock(return_value=HealthStatus("shard_1", False, datetime.utcnow(), error_message="timeout"))

        result = ShardService(db, health_checker=unhealthy).assign_shard(website, "shard_1", "ops@example.com")

        assert result.error == "Cannot assign to shard 'shard_1': timeout"
        assert website.shard_name == "default"

    def test_distribution(self, db, website, other_website):
        other_website.shard_name = "shard_1"
        db.commit()

        assert ShardService(db).shard_distribution() == {
            "distribution": {"default": 1, "shard_1": 1},
            "total": 2,
            "percentages": {"default": 50.0, "shard_1": 50.0},
        }

    def test_assign_through_api(self, platform_client, db, website, second_shard):
        response = platform_client.put(
            f"/api/tenant_admin/websites/{website.id}/shard", json={"shard_name": "shard_1", "notes": "Move"}
        )

        assert response.status_code == 200
        assert response.json()["new_shard"] == "shard_1"
        audit = platform_client.get(f"/api/tenant_admin/websites/{website.id}/shard_audit").json()
        assert audit[0]["changed_by_email"] == "ops@propertywebbuilder.com"

    def test_list_shards_hides_credentials(self, platform_client, second_shard):
        shards = platform_client.get("/api/tenant_admin/shards").json()["shards"]

        assert [s["name"] for s in shards] == ["default", "shard_1"]
        assert all("@" not in (s["database"] or "") for s in shards)


class TestSubdomainPoolAdmin:
    def test_populate_and_stats(self, platform_client):
        data = platform_client.post("/api/tenant_admin/subdomains/populate", json={"count": 5}).json()

        assert data["created"] == 5
        assert data["available"] == 5
        assert data["total"] == 5

    def test_release_expired(self, platform_client, db):
        db.add(Subdomain(
            name="old-hold-10", aasm_state="reserved", reserved_by_email="late@example.com",
            reserved_until=datetime.utcnow() - timedelta(minutes=1),
        ))
        db.commit()

        assert platform_client.post("/api/tenant_admin/subdomains/release_expired").json() == {"released": 1}


class TestExchangeRates:
    """Test rate parsing, refresh and conversion."""

    def test_parse_ecb_xml(self):
        rates = parse_ecb_xml(ECB_XML)
        assert rates == {"EUR": 1.0, "USD": 1.0812, "GBP": 0.8554, "JPY": 162.47}

    def test_parse_empty_document(self):
        with pytest.raises(ValueError):
            parse_ecb_xml("<Envelope><Cube/></Envelope>")

    def test_build_rates_from_non_euro_base(self):
        assert build_rates(EUR_RATES, "GBP", ["EUR", "USD", "GBP", "XXX"]) == {
            "EUR": round(1 / 0.85, 6),
            "USD": round(1.1 / 0.85, 6),
        }

    def test_update_rates(self, db, website):
        rates = update_rates(db, website, fetcher=lambda: EUR_RATES)

        assert rates == {"USD": 1.1}
        assert website.exchange_rates == {"USD": 1.1}
        assert rates_stale(website) is False

    def test_update_rates_failure(self, db, website):
        def failing():
            raise requests.ConnectionError("ecb down")

        with pytest.raises(RateFetchError):
            update_rates(db, website, fetcher=failing)

    def test_single_currency_website_is_skipped(self, db, website, other_website):
        assert update_all_rates(db, fetcher=lambda: EUR_RATES) == 1

    def test_fetch_uses_cache(self, fake_redis, monkeypatch):
        fake_redis.set(ECB_CACHE_KEY, json.dumps(EUR_RATES))
        monkeypatch.setattr(exchange_rates.requests, "get", Mock(side_effect=AssertionError("network used")))

        assert exchange_rates.fetch_ecb_rates() == EUR_RATES

    def test_conversion(self, website):
        website.exchange_rates = {"USD": 1.1, "GBP": 0.85}

        assert get_rate(website, "EUR", "EUR") == 1.0
        assert convert(100_00, "EUR", "USD", website) == 110_00
        assert convert(110_00, "USD", "EUR", website) == 100_00
        assert get_rate(website, "USD", "GBP") == pytest.approx(0.85 / 1.1)
        assert convert(100, "EUR", "CHF", website) is None
        assert convert(None, "EUR", "USD", website) is None

    def test_stale_without_refresh(self):
        assert rates_stale(Website()) is True

    def test_refresh_through_api(self, platform_client, website, fake_redis):
        fake_redis.set(ECB_CACHE_KEY, json.dumps(EUR_RATES))

        data = platform_client.post(f"/api/tenant_admin/websites/{website.id}/exchange_rates").json()

        assert data["base"] == "EUR"
        assert data["rates"] == {"USD": 1.1}
