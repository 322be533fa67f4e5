"""
Claude-generated narrative insights for CMA reports.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import anthropic

from pwb.core.config import settings
from pwb.models.market_report import MarketReport, format_price
from pwb.services.reports.statistics import StatisticsResult

logger = logging.getLogger(__name__)

INSIGHT_KEYS = (
    "executive_summary",
    "market_position",
    "pricing_rationale",
    "recommendation",
    "time_to_sell_estimate",
    "confidence_level",
)

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


@dataclass
class InsightsResult:
    success: bool
    insights: Optional[Dict[str, Any]] = None
    suggested_price: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


class CmaInsightsGenerator:
    """Asks Claude for an appraisal-style summary of the comparables."""

    def __init__(self, report: MarketReport, comparables: List[Dict[str, Any]],
                 statistics: Optional[StatisticsResult], client: Optional[anthropic.Anthropic] = None):
        self.report = report
        self.subject = report.subject_prop
        self.comparables = comparables
        self.statistics = statistics
        self.client = client
        self.model = settings.ANTHROPIC_MODEL

    def generate(self) -> InsightsResult:
        if self.client is None:
            if not settings.ANTHROPIC_API_KEY:
                logger.warning(f"No Anthropic API key configured, skipping insights for report {self.report.id}")
                return InsightsResult(success=False, error="AI insights are not configured")
            self.client = anthropic.Anthropic(api_key=settings.ANTHROPIC_API_KEY)

        try:
            logger.debug(f"Sending CMA insights request for report {self.report.id} to Claude")
            message = self.client.messages.create(
                model=self.model,
                max_tokens=2048,
                messages=[{"role": "user", "content": self.prompt()}],
            )
            response_text = message.content[0].text
            logger.debug(f"Received insights response, length: {len(response_text)} characters")
            result = self.parse(response_text)
            logger.info(f"Generated CMA insights for report {self.report.id}")
            return result
        except anthropic.APIError as e:
            logger.error(f"Claude API error for report {self.report.id}: {e}")
            return InsightsResult(success=False, error=str(e))
        except ValueError as e:
            logger.error(f"Could not parse insights for report {self.report.id}: {e}")
            return InsightsResult(success=False, error=str(e))

    def parse(self, response_text: str) -> InsightsResult:
        match = _JSON_OBJECT.search(response_text or "")
        if not match:
            raise ValueError("No valid JSON in response")
        try:
            parsed = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            raise ValueError(f"Failed to parse AI response: {e}") from e

        insights = {key: parsed.get(key) for key in INSIGHT_KEYS}
        insights["strengths"] = parsed.get("strengths") or []
        insights["considerations"] = parsed.get("considerations") or []

        suggested_price = {
            "low_cents": parsed.get("suggested_price_low_cents"),
            "high_cents": parsed.get("suggested_price_high_cents"),
            "currency": self.report.suggested_price_currency or "USD",
        }
        return InsightsResult(success=True, insights=insights, suggested_price=suggested_price)

    # Prompt

    def _price(self, cents: Optional[int]) -> str:
        return format_price(cents, self.report.suggested_price_currency or "USD") or "N/A"

    def suggested_bounds(self) -> tuple:
        stats = self.statistics
        baseline = None
        if stats is not None:
            baseline = stats.adjusted_median_cents or stats.median_price_cents
        if not baseline:
            return 0, 0
        return round(baseline * 0.95), round(baseline * 1.05)

    def format_subject(self) -> str:
        subject = self.subject
        if subject is None:
            return "No subject property specified"

        lines = [
            "Address: " + ", ".join(p for p in (subject.street_address, subject.city, subject.postal_code) if p),
            f"Property Type: {subject.prop_type_key}",
        ]
        if subject.count_bedrooms:
            lines.append(f"Bedrooms: {subject.count_bedrooms}")
        if subject.count_bathrooms:
            lines.append(f"Bathrooms: {subject.count_bathrooms}")
        if subject.constructed_area:
            lines.append(f"Size: {subject.constructed_area} sqm")
        if subject.year_construction:
            lines.append(f"Year Built: {subject.year_construction}")
        if subject.count_garages:
            lines.append(f"Garages: {subject.count_garages}")
        return "\n".join(lines)

    def format_adjustments(self, adjustments: Optional[dict]) -> str:
        if not adjustments:
            return "None"
        parts = []
        for key, adj in adjustments.items():
            sign = "+" if adj["adjustment_cents"] >= 0 else ""
            parts.append(f"{key.replace('_', ' ').capitalize()}: {sign}{self._price(adj['adjustment_cents'])}")
        return ", ".join(parts)

    def format_comparables(self) -> str:
        if not self.comparables:
            return "No comparable properties found"

        blocks = []
        for i, comp in enumerate(self.comparables, start=1):
            blocks.append(
                f"### Comparable {i}\n"
                f"- Address: {comp.get('address')}\n"
                f"- Sale Price: {self._price(comp.get('price_cents'))}\n"
                f"- Bedrooms: {comp.get('bedrooms')}, Bathrooms: {comp.get('bathrooms')}\n"
                f"- Size: {comp.get('constructed_area')} sqm\n"
                f"- Year Built: {comp.get('year_built')}\n"
                f"- Similarity Score: {comp.get('similarity_score')}%\n"
                f"- Distance: {comp.get('distance_km')} km\n"
                f"- Adjustments: {self.format_adjustments(comp.get('adjustments'))}\n"
                f"- Adjusted Price: {self._price(comp.get('adjusted_price_cents'))}\n"
            )
        return "\n".join(blocks)

    def format_statistics(self) -> str:
        stats = self.statistics
        if stats is None:
            return "No statistics available"

        lines = [
            f"Average Price: {self._price(stats.average_price_cents)}",
            f"Median Price: {self._price(stats.median_price_cents)}",
            f"Adjusted Average: {self._price(stats.adjusted_average_cents)}",
            f"Adjusted Median: {self._price(stats.adjusted_median_cents)}",
            f"Price per sqm: {self._price(stats.price_per_area_cents)}",
            f"Comparable Count: {stats.comparable_count}",
            f"Average Similarity Score: {stats.statistics.get('average_similarity')}%",
        ]
        if stats.price_range:
            lines.append(
                f"Price Range: {self._price(stats.price_range['low_cents'])} - "
                f"{self._price(stats.price_range['high_cents'])}"
            )
        return "\n".join(lines)

    def prompt(self) -> str:
        low, high = self.suggested_bounds()
        return f"""
You are an expert real estate appraiser and market analyst. Generate a professional CMA (Comparative Market Analysis) insight report.

## Subject Property
{self.format_subject()}

## Comparable Properties ({len(self.comparables)} found)
{self.format_comparables()}

## Market Statistics
{self.format_statistics()}

## Task
Analyze the data and provide a comprehensive CMA report. Return your response as valid JSON in this exact format:

{{
    "executive_summary": "2-3 sentence overview of the property's market position and recommended pricing",
    "market_position": "How this property compares to the local market with specific reasons",
    "pricing_rationale": "How the suggested price range was determined from the comparables",
    "strengths": ["3-5 key strengths or selling points"],
    "considerations": ["2-3 factors that might affect marketability"],
    "recommendation": "Clear, actionable pricing recommendation",
    "time_to_sell_estimate": "Estimated days on market at the suggested price",
    "suggested_price_low_cents": {low},
    "suggested_price_high_cents": {high},
    "confidence_level": "high/medium/low based on comparable quality and quantity"
}}

Important:
- Return ONLY valid JSON, no additional text or markdown
- Base your analysis on the comparable data provided
- Suggested prices are in cents (e.g. $350,000 = 35000000)
"""
