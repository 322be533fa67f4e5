"""Market statistics over a set of comparables."""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pwb.models.prop import Prop


@dataclass
class StatisticsResult:
    comparable_count: int
    currency: str
    average_price_cents: Optional[int] = None
    median_price_cents: Optional[int] = None
    price_per_area_cents: Optional[int] = None
    price_range: Optional[Dict[str, int]] = None
    adjusted_average_cents: Optional[int] = None
    adjusted_median_cents: Optional[int] = None
    statistics: Dict[str, Any] = field(default_factory=dict)


def average(values: List[float]) -> Optional[int]:
    if not values:
        return None
    return round(sum(values) / len(values))


def median(values: List[float]) -> Optional[int]:
    if not values:
        return None
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2:
        return ordered[mid]
    return round((ordered[mid - 1] + ordered[mid]) / 2)


def standard_deviation(values: List[float]) -> Optional[int]:
    """Sample standard deviation; needs at least two values."""
    if len(values) < 2:
        return None
    mean = sum(values) / len(values)
    variance = sum((v - mean) ** 2 for v in values) / (len(values) - 1)
    return round(math.sqrt(variance))


def _positive(values) -> list:
    return [v for v in values if v is not None and v > 0]


class StatisticsCalculator:
    def __init__(self, comparables: List[Dict[str, Any]], subject: Optional[Prop] = None, currency: str = "USD"):
        self.comparables = comparables or []
        self.subject = subject
        self.currency = currency

    def calculate(self) -> StatisticsResult:
        if not self.comparables:
            return StatisticsResult(comparable_count=0, currency=self.currency, statistics={"comparable_count": 0})

        prices = _positive(c.get("price_cents") for c in self.comparables)
        adjusted = _positive(c.get("adjusted_price_cents") for c in self.comparables)
        sizes = _positive(c.get("constructed_area") for c in self.comparables)

        price_range = None
        if prices:
            price_range = {
                "low_cents": min(prices),
                "high_cents": max(prices),
                "range_cents": max(prices) - min(prices),
            }

        return StatisticsResult(
            comparable_count=len(self.comparables),
            currency=self.currency,
            average_price_cents=average(prices),
            median_price_cents=median(prices),
            price_per_area_cents=self.price_per_area(),
            price_range=price_range,
            adjusted_average_cents=average(adjusted),
            adjusted_median_cents=median(adjusted),
            statistics=self.full_statistics(prices, adjusted, sizes),
        )

    def price_per_area(self) -> Optional[int]:
        values = [
            round(c["price_cents"] / c["constructed_area"])
            for c in self.comparables
            if (c.get("price_cents") or 0) > 0 and (c.get("constructed_area") or 0) > 0
        ]
        return average(values)

    def full_statistics(self, prices, adjusted, sizes) -> Dict[str, Any]:
        similarity = [c["similarity_score"] for c in self.comparables if c.get("similarity_score") is not None]
        sizes_tenths = [round(s * 10) for s in sizes]
        per_area = self.price_per_area()

        stats = {
            "average_price": average(prices),
            "median_price": median(prices),
            "min_price": min(prices) if prices else None,
            "max_price": max(prices) if prices else None,
            "price_std_dev": standard_deviation(prices),
            "adjusted_average_price": average(adjusted),
            "adjusted_median_price": median(adjusted),
            "average_size": average(sizes_tenths),
            "median_size": median(sizes_tenths),
            "min_size": round(min(sizes)) if sizes else None,
            "max_size": round(max(sizes)) if sizes else None,
            "price_per_area": per_area,
            "average_price_per_area": per_area,
            "comparable_count": len(self.comparables),
            "price_range_cents": (max(prices) - min(prices)) if prices else None,
            "similarity_scores": similarity,
            "average_similarity": average(similarity),
            "subject_size": self.subject.constructed_area if self.subject else None,
            "estimated_value": self.subject_value_estimate(adjusted, sizes),
        }
        return {key: value for key, value in stats.items() if value is not None}

    def subject_value_estimate(self, adjusted, sizes) -> Optional[Dict[str, Any]]:
        subject_area = self.subject.constructed_area if self.subject else None
        if not adjusted or not subject_area or subject_area <= 0:
            return None

        avg_adjusted = average(adjusted)
        avg_size = average([round(s * 10) / 10 for s in sizes])
        if not avg_adjusted or not avg_size:
            return None

        per_area = avg_adjusted / avg_size
        estimated = round(per_area * subject_area)
        return {
            "price_per_area_cents": round(per_area),
            "subject_size": subject_area,
            "estimated_value_cents": estimated,
        }
