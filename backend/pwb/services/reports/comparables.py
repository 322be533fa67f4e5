"""
Comparable property search for CMA reports.

Each candidate starts at 100 similarity points and loses points for
differences with the subject; price adjustments estimate what the
comparable would sell for with the subject's characteristics.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from pwb.core.tenant import for_website
from pwb.models.prop import Prop
from pwb.models.website import Website

logger = logging.getLogger(__name__)

# Price adjustments, in cents
ADJUSTMENT_FACTORS = {
    "bedroom": 15_000_00,
    "bathroom": 10_000_00,
    "size": 150_00,
    "year_built": 1_000_00,
    "garage": 8_000_00,
}

# Maximum deduction per criterion
SIMILARITY_WEIGHTS = {
    "property_type": 20,
    "bedrooms": 15,
    "bathrooms": 10,
    "size": 20,
    "location": 20,
    "year": 10,
}

DEFAULT_OPTIONS = {
    "radius_km": 2,
    "months_back": 6,
    "max_comparables": 10,
    "min_similarity_score": 50,
}

EARTH_RADIUS_KM = 6371


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_phi = math.radians(lat2 - lat1)
    delta_lambda = math.radians(lng2 - lng1)

    a = math.sin(delta_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return round(EARTH_RADIUS_KM * c, 2)


def listing_price_cents(prop: Prop) -> Optional[int]:
    if prop.for_sale and (prop.price_sale_current_cents or 0) > 0:
        return prop.price_sale_current_cents
    if prop.for_rent and (prop.price_rental_monthly_current_cents or 0) > 0:
        return prop.price_rental_monthly_current_cents
    return None


def listing_currency(prop: Prop) -> str:
    if prop.for_sale:
        return prop.price_sale_current_currency or "USD"
    return prop.price_rental_monthly_current_currency or "USD"


@dataclass
class ComparablesResult:
    comparables: List[Dict[str, Any]]
    total_found: int
    search_criteria: Dict[str, Any] = field(default_factory=dict)


class ComparablesFinder:
    """Finds and scores comparables for a subject property."""

    def __init__(self, db: Session, subject: Prop, website: Website, options: Optional[dict] = None):
        self.db = db
        self.subject = subject
        self.website = website
        self.options = {**DEFAULT_OPTIONS, **(options or {})}

    def find(self) -> ComparablesResult:
        candidates = self.find_candidates()
        scored = [self.score(prop) for prop in candidates]
        filtered = [c for c in scored if c["similarity_score"] >= self.options["min_similarity_score"]]
        filtered.sort(key=lambda c: -c["similarity_score"])
        limited = filtered[: self.options["max_comparables"]]

        logger.info(
            f"Found {len(candidates)} candidates, {len(limited)} comparables "
            f"for property {self.subject.id} on website {self.website.id}"
        )
        return ComparablesResult(comparables=limited, total_found=len(candidates), search_criteria=self.search_criteria())

    # Candidate search

    @property
    def has_coordinates(self) -> bool:
        return self.subject.latitude is not None and self.subject.longitude is not None

    def find_candidates(self) -> List[Prop]:
        subject = self.subject
        query = for_website(self.db, Prop, self.website.id).filter(Prop.visible.is_(True))

        if self.has_coordinates:
            radius = self.options["radius_km"]
            lat_delta = radius / 111.0
            lng_delta = radius / (111.0 * math.cos(math.radians(subject.latitude)))
            query = query.filter(
                Prop.latitude.between(subject.latitude - lat_delta, subject.latitude + lat_delta),
                Prop.longitude.between(subject.longitude - lng_delta, subject.longitude + lng_delta),
            )

        if subject.prop_type_key:
            query = query.filter(Prop.prop_type_key == subject.prop_type_key)

        if subject.for_sale:
            query = query.filter(Prop.for_sale.is_(True))
        elif subject.for_rent:
            query = query.filter((Prop.for_rent_long_term.is_(True)) | (Prop.for_rent_short_term.is_(True)))

        area = subject.constructed_area or 0
        if area > 0:
            query = query.filter(Prop.constructed_area.between(area * 0.7, area * 1.3))

        bedrooms = subject.count_bedrooms or 0
        if bedrooms > 0:
            query = query.filter(Prop.count_bedrooms.between(bedrooms - 1, bedrooms + 1))

        if subject.id is not None:
            query = query.filter(Prop.id != subject.id)

        return query.all()

    # Scoring

    def score(self, prop: Prop) -> Dict[str, Any]:
        adjustments = self.adjustments(prop)
        price = listing_price_cents(prop)
        adjusted = price + sum(a["adjustment_cents"] for a in adjustments.values()) if price else None

        return {
            "id": prop.id,
            "reference": prop.reference,
            "address": ", ".join(p for p in (prop.street_address, prop.city, prop.postal_code) if p),
            "city": prop.city,
            "property_type": prop.prop_type_key,
            "bedrooms": prop.count_bedrooms,
            "bathrooms": prop.count_bathrooms,
            "constructed_area": prop.constructed_area,
            "year_built": prop.year_construction,
            "garages": prop.count_garages,
            "price_cents": price,
            "currency": listing_currency(prop),
            "similarity_score": self.similarity(prop),
            "adjustments": adjustments,
            "adjusted_price_cents": adjusted,
            "distance_km": self.distance(prop),
            "photo_url": prop.primary_image_url,
        }

    def similarity(self, prop: Prop) -> float:
        subject = self.subject
        score = 100.0

        if prop.prop_type_key != subject.prop_type_key:
            score -= SIMILARITY_WEIGHTS["property_type"]

        bedroom_diff = abs((subject.count_bedrooms or 0) - (prop.count_bedrooms or 0))
        score -= min(bedroom_diff * 3, SIMILARITY_WEIGHTS["bedrooms"])

        bathroom_diff = abs((subject.count_bathrooms or 0) - (prop.count_bathrooms or 0))
        score -= min(bathroom_diff * 5, SIMILARITY_WEIGHTS["bathrooms"])

        if (subject.constructed_area or 0) > 0 and (prop.constructed_area or 0) > 0:
            size_diff_pct = abs(1 - prop.constructed_area / subject.constructed_area) * 100
            score -= min(size_diff_pct / 5, SIMILARITY_WEIGHTS["size"])

        distance = self.distance(prop)
        if distance is not None:
            score -= min(distance * 4, SIMILARITY_WEIGHTS["location"])

        if (subject.year_construction or 0) > 0 and (prop.year_construction or 0) > 0:
            year_diff = abs(subject.year_construction - prop.year_construction)
            score -= min(year_diff // 5, SIMILARITY_WEIGHTS["year"])

        return max(round(score, 1), 0)

    def adjustments(self, prop: Prop) -> Dict[str, Dict[str, Any]]:
        subject = self.subject
        adjustments: Dict[str, Dict[str, Any]] = {}

        bedroom_diff = (subject.count_bedrooms or 0) - (prop.count_bedrooms or 0)
        if bedroom_diff:
            adjustments["bedrooms"] = {
                "difference": bedroom_diff,
                "adjustment_cents": bedroom_diff * ADJUSTMENT_FACTORS["bedroom"],
            }

        bathroom_diff = float(subject.count_bathrooms or 0) - float(prop.count_bathrooms or 0)
        if abs(bathroom_diff) >= 0.5:
            adjustments["bathrooms"] = {
                "difference": bathroom_diff,
                "adjustment_cents": round(bathroom_diff * ADJUSTMENT_FACTORS["bathroom"]),
            }

        if (subject.constructed_area or 0) > 0 and (prop.constructed_area or 0) > 0:
            size_diff = subject.constructed_area - prop.constructed_area
            if abs(size_diff) > 10:
                adjustments["size"] = {
                    "difference": round(size_diff),
                    "adjustment_cents": round(size_diff * ADJUSTMENT_FACTORS["size"]),
                }

        if (subject.year_construction or 0) > 0 and (prop.year_construction or 0) > 0:
            year_diff = subject.year_construction - prop.year_construction
            if abs(year_diff) > 5:
                adjustments["year_built"] = {
                    "difference": year_diff,
                    "adjustment_cents": year_diff * ADJUSTMENT_FACTORS["year_built"],
                }

        garage_diff = (subject.count_garages or 0) - (prop.count_garages or 0)
        if garage_diff:
            adjustments["garages"] = {
                "difference": garage_diff,
                "adjustment_cents": garage_diff * ADJUSTMENT_FACTORS["garage"],
            }

        return adjustments

    def distance(self, prop: Prop) -> Optional[float]:
        if not self.has_coordinates or prop.latitude is None or prop.longitude is None:
            return None
        return haversine_km(self.subject.latitude, self.subject.longitude, prop.latitude, prop.longitude)

    def search_criteria(self) -> Dict[str, Any]:
        subject = self.subject
        return {
            "radius_km": self.options["radius_km"],
            "months_back": self.options["months_back"],
            "max_comparables": self.options["max_comparables"],
            "property_type": subject.prop_type_key,
            "bedrooms": subject.count_bedrooms,
            "bathrooms": subject.count_bathrooms,
            "size": subject.constructed_area,
            "location": {
                "city": subject.city,
                "region": subject.region,
                "latitude": subject.latitude,
                "longitude": subject.longitude,
            },
        }
