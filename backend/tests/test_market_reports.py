"""Tests for comparative market analysis reports."""

import json
from unittest.mock import Mock

import anthropic
import httpx
import pytest

from pwb.core.config import settings
from pwb.models import MarketReport, Prop
from pwb.services.reports.comparables import ComparablesFinder, haversine_km
from pwb.services.reports.generator import NO_COMPARABLES_MESSAGE, CmaGenerator
from pwb.services.reports.insights import CmaInsightsGenerator
from pwb.services.reports.statistics import StatisticsCalculator, median, standard_deviation

INSIGHTS_JSON = {
    "executive_summary": "Well priced two-bedroom close to the beach.",
    "market_position": "In line with the street.",
    "pricing_rationale": "Adjusted median of three sales.",
    "strengths": ["Sea views", "Renovated kitchen"],
    "considerations": ["No parking"],
    "recommendation": "List at the midpoint.",
    "time_to_sell_estimate": "45-60 days",
    "suggested_price_low_cents": 24_000_000,
    "suggested_price_high_cents": 26_000_000,
    "confidence_level": "medium",
}


def claude_client(text):
    client = Mock()
    client.messages.create.return_value = Mock(content=[Mock(text=text)])
    return client


@pytest.fixture
def neighbourhood(website, make_prop):
    """A subject flat with two nearby comparables and listings that do not qualify."""
    subject = make_prop(website, reference="SUBJECT")
    close = make_prop(website, reference="CLOSE", constructed_area=85, price_sale_current_cents=26_000_000,
                      latitude=36.512, longitude=-4.881)
    larger = make_prop(website, reference="LARGER", count_bedrooms=3, count_bathrooms=2, constructed_area=100,
                       price_sale_current_cents=30_000_000, latitude=36.515, longitude=-4.88)
    make_prop(website, reference="FAR", latitude=37.2, longitude=-4.88)
    make_prop(website, reference="VILLA", prop_type_key="types.villa")
    make_prop(website, reference="HUGE", constructed_area=300)
    return {"subject": subject, "close": close, "larger": larger}


class TestComparables:
    """Test candidate search, similarity and adjustments."""

    def test_haversine(self):
        assert haversine_km(51.5074, -0.1278, 48.8566, 2.3522) == pytest.approx(343.5, abs=1)
        assert haversine_km(36.51, -4.88, 36.51, -4.88) == 0

    def test_finds_similar_listings_nearby(self, db, website, neighbourhood):
        result = ComparablesFinder(db, neighbourhood["subject"], website).find()

        assert [c["reference"] for c in result.comparables] == ["CLOSE", "LARGER"]
        assert result.total_found == 2
        assert result.search_criteria["radius_km"] == 2

    def test_similarity_is_highest_for_closest_match(self, db, website, neighbourhood):
        finder = ComparablesFinder(db, neighbourhood["subject"], website)

        close = finder.similarity(neighbourhood["close"])
        larger = finder.similarity(neighbourhood["larger"])

        assert 95 < close < 100
        assert larger < close

    def test_adjustments_toward_subject(self, website):
        subject = Prop(count_bedrooms=2, count_bathrooms=1, constructed_area=80, year_construction=2010,
                       count_garages=1)
        comparable = Prop(count_bedrooms=3, count_bathrooms=2, constructed_area=100, year_construction=2000,
                          count_garages=1, for_sale=True, price_sale_current_cents=30_000_000)
        finder = ComparablesFinder(None, subject, website)

        adjustments = finder.adjustments(comparable)

        assert adjustments == {
            "bedrooms": {"difference": -1, "adjustment_cents": -1_500_000},
            "bathrooms": {"difference": -1.0, "adjustment_cents": -1_000_000},
            "size": {"difference": -20, "adjustment_cents": -300_000},
            "year_built": {"difference": 10, "adjustment_cents": 1_000_000},
        }
        assert finder.score(comparable)["adjusted_price_cents"] == 28_200_000

    def test_small_differences_are_not_adjusted(self, website):
        subject = Prop(count_bedrooms=2, constructed_area=80, year_construction=2010)
        comparable = Prop(count_bedrooms=2, constructed_area=85, year_construction=2008)

        assert ComparablesFinder(None, subject, website).adjustments(comparable) == {}


class TestStatistics:
    def test_calculate(self):
        comparables = [
            {"price_cents": 10_000_000, "adjusted_price_cents": 11_000_000, "constructed_area": 100,
             "similarity_score": 90},
            {"price_cents": 20_000_000, "adjusted_price_cents": 19_000_000, "constructed_area": 100,
             "similarity_score": 80},
            {"price_cents": 30_000_000, "adjusted_price_cents": None, "constructed_area": 150,
             "similarity_score": 70},
        ]
        subject = Prop(constructed_area=120)

        result = StatisticsCalculator(comparables, subject, "EUR").calculate()

        assert result.average_price_cents == 20_000_000
        assert result.median_price_cents == 20_000_000
        assert result.price_range == {"low_cents": 10_000_000, "high_cents": 30_000_000, "range_cents": 20_000_000}
        assert result.adjusted_average_cents == 15_000_000
        assert result.price_per_area_cents == round((100_000 + 200_000 + 200_000) / 3)
        assert result.statistics["average_similarity"] == 80
        assert result.statistics["price_std_dev"] == 10_000_000
        assert "estimated_value" in result.statistics

    def test_no_comparables(self):
        result = StatisticsCalculator([], currency="EUR").calculate()
        assert result.comparable_count == 0
        assert result.average_price_cents is None

    def test_helpers(self):
        assert median([4, 1, 3, 2]) == 2
        assert median([5, 1, 3]) == 3
        assert standard_deviation([7]) is None


class TestInsights:
    """Test the narrative insights request and parsing."""

    def report(self):
        return MarketReport(id=1, title="CMA", suggested_price_currency="EUR")

    def test_parses_json_inside_prose(self):
        client = claude_client("Here is the analysis:\n" + json.dumps(INSIGHTS_JSON) + "\nThanks")

        result = CmaInsightsGenerator(self.report(), [], None, client=client).generate()

        assert result.success is True
        assert result.insights["strengths"] == ["Sea views", "Renovated kitchen"]
        assert result.suggested_price == {"low_cents": 24_000_000, "high_cents": 26_000_000, "currency": "EUR"}
        assert client.messages.create.call_args.kwargs["model"] == settings.ANTHROPIC_MODEL

    def test_response_without_json(self):
        result = CmaInsightsGenerator(self.report(), [], None, client=claude_client("I cannot help")).generate()

        assert result.success is False
        assert result.error == "No valid JSON in response"

    def test_api_error(self):
        client = Mock()
        client.messages.create.side_effect = anthropic.APIConnectionError(
            request=httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        )

        result = CmaInsightsGenerator(self.report(), [], None, client=client).generate()

        assert result.success is False

    def test_not_configured(self, monkeypatch):
        monkeypatch.setattr(settings, "ANTHROPIC_API_KEY", "")

        result = CmaInsightsGenerator(self.report(), [], None).generate()

        assert result.error == "AI insights are not configured"

    def test_prompt_describes_comparables(self):
        comparables = [{"address": "1 Calle Mar, Marbella", "price_cents": 26_000_000,
                        "adjustments": {"size": {"adjustment_cents": -75_000}}, "similarity_score": 97.5}]
        prompt = CmaInsightsGenerator(self.report(), comparables, None).prompt()

        assert "### Comparable 1" in prompt
        assert "Sale Price: €260,000" in prompt
        assert "Size: €-750" in prompt
        assert "No subject property specified" in prompt


class TestCmaGenerator:
    def test_generate_with_insights(self, db, website, agency, admin_user, neighbourhood):
        client = claude_client(json.dumps(INSIGHTS_JSON))

        result = CmaGenerator(db, neighbourhood["subject"], website, user=admin_user,
                              insights_client=client).generate()

        report = result.report
        assert result.success is True
        assert report.status == "completed"
        assert report.reference_number.startswith("CMA-")
        assert report.title == "CMA Report for Marbella"
        assert report.comparable_count == 2
        assert report.suggested_price_range["formatted_low"] == "€240,000"
        assert report.executive_summary == INSIGHTS_JSON["executive_summary"]
        assert report.branding == {
            "company_name": "Tenant A Realty",
            "agent_name": "Olivia Owner",
            "agent_email": "owner@tenant-a.com",
            "agent_phone": "+34 600 000 000",
        }

    def test_generate_without_comparables(self, db, website, prop):
        result = CmaGenerator(db, prop, website, insights_client=Mock()).generate()

        assert result.success is True
        assert result.report.status == "completed"
        assert result.report.error_message == NO_COMPARABLES_MESSAGE

    def test_insights_failure_keeps_statistics(self, db, website, neighbourhood):
        result = CmaGenerator(db, neighbourhood["subject"], website,
                              insights_client=claude_client("no json")).generate()

        assert result.success is False
        assert result.report.status == "completed"
        assert result.report.market_statistics["comparable_count"] == 2
        assert result.report.error_message == "No valid JSON in response"


class TestMarketReportRoutes:
    """Test creating, sharing and viewing reports."""

    @pytest.fixture(autouse=True)
    def inline_generation(self, monkeypatch):
        monkeypatch.setattr(settings, "ENABLE_TEMPORAL_WORKFLOWS", False)
        monkeypatch.setattr(settings, "ANTHROPIC_API_KEY", "")

    def test_create_share_and_view(self, admin_client, client, website, neighbourhood):
        created = admin_client.post("/api/site_admin/market_reports", json={"prop_id": neighbourhood["subject"].id})

        assert created.status_code == 201
        report = created.json()
        assert report["status"] == "completed"
        assert report["comparable_count"] == 2
        assert report["error_message"] == "AI insights are not configured"
        assert report["pdf_filename"] == f"cma_{report['reference_number']}.pdf"

        shared = admin_client.post(f"/api/site_admin/market_reports/{report['id']}/share").json()
        assert shared["status"] == "shared"

        viewed = client.get(f"/api/public/reports/{shared['share_token']}").json()
        assert viewed["view_count"] == 1
        assert viewed["id"] == report["id"]

    def test_cannot_share_draft(self, admin_client, db, website, prop):
        report = MarketReport(website_id=website.id, subject_prop_id=prop.id, title="Draft")
        db.add(report)
        db.commit()

        response = admin_client.post(f"/api/site_admin/market_reports/{report.id}/share")

        assert response.status_code == 422

    def test_unknown_property(self, admin_client, website, other_website, make_prop):
        foreign = make_prop(other_website)
        response = admin_client.post("/api/site_admin/market_reports", json={"prop_id": foreign.id})

        assert response.status_code == 404

    def test_unshared_report_is_private(self, client, db, website, prop):
        db.add(MarketReport(website_id=website.id, title="Done", status="completed", share_token="secret"))
        db.commit()

        assert client.get("/api/public/reports/secret").status_code == 404

    def test_list_and_delete(self, admin_client, db, website, prop):
        report = MarketReport(website_id=website.id, subject_prop_id=prop.id, title="Old", status="completed")
        db.add(report)
        db.commit()

        listed = admin_client.get("/api/site_admin/market_reports", params={"report_status": "completed"}).json()
        assert [r["title"] for r in listed] == ["Old"]

        assert admin_client.delete(f"/api/site_admin/market_reports/{report.id}").status_code == 204
        assert admin_client.get(f"/api/site_admin/market_reports/{report.id}").status_code == 404
