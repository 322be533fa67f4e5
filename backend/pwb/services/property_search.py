"""
Public property search with filters, sorting, pagination and facet counts.
"""

import logging
import math
from typing import Any, Dict, Iterable, List, Mapping, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Query, Session

from pwb.core.tenant import for_website
from pwb.models.content import FieldKey
from pwb.models.prop import Feature, Prop
from pwb.models.website import Website

logger = logging.getLogger(__name__)

OPERATIONS = ("for_sale", "for_rent")
DEFAULT_PER_PAGE = 12
MAX_PER_PAGE = 100

# Currencies without a minor unit
ZERO_DECIMAL_CURRENCIES = {"JPY", "KRW", "CLP", "VND", "ISK", "PYG", "UGX"}


def subunit_to_unit(currency: Optional[str]) -> int:
    return 1 if (currency or "").upper() in ZERO_DECIMAL_CURRENCIES else 100


def key_variants(slug: str, prefixes: Iterable[str] = ()) -> List[str]:
    """Stored keys a URL slug may refer to (``pool`` -> ``features.pool``...)."""
    bases = {slug, slug.replace("-", "_")}
    variants = set(bases)
    for prefix in prefixes:
        variants.update(f"{prefix}.{base}" for base in bases)
    return sorted(variants)


def humanize_key(global_key: str) -> str:
    return global_key.split(".")[-1].replace("_", " ").replace("-", " ").title()


class PropertySearch:
    """Searches one website's visible listings."""

    def __init__(self, db: Session, website: Website):
        self.db = db
        self.website = website

    def visible(self) -> Query:
        return for_website(self.db, Prop, self.website.id).filter(Prop.visible.is_(True))

    @staticmethod
    def price_column(operation: str):
        if operation == "for_rent":
            return Prop.price_rental_monthly_for_search_cents
        return Prop.price_sale_current_cents

    def filtered(self, criteria: Mapping[str, Any], operation: str = "for_sale",
                 currency: Optional[str] = None) -> Query:
        query = self.visible()

        if operation == "for_rent":
            query = query.filter(or_(Prop.for_rent_long_term.is_(True), Prop.for_rent_short_term.is_(True)))
        else:
            query = query.filter(Prop.for_sale.is_(True))

        property_type = criteria.get("property_type")
        if property_type:
            query = query.filter(self._key_match(Prop.prop_type_key, property_type))

        property_state = criteria.get("property_state")
        if property_state:
            query = query.filter(self._key_match(Prop.prop_state_key, property_state))

        unit = subunit_to_unit(currency or self.website.default_currency)
        price = self.price_column(operation)
        if criteria.get("price_min"):
            query = query.filter(price >= int(criteria["price_min"]) * unit)
        if criteria.get("price_max"):
            query = query.filter(price <= int(criteria["price_max"]) * unit)

        if criteria.get("bedrooms"):
            query = query.filter(Prop.count_bedrooms >= int(criteria["bedrooms"]))
        if criteria.get("bathrooms"):
            query = query.filter(Prop.count_bathrooms >= float(criteria["bathrooms"]))

        for slug in criteria.get("features") or []:
            query = query.filter(Prop.id.in_(self._props_with_keys(key_variants(slug, ("features", "amenities")))))

        any_features = criteria.get("any_features") or []
        if any_features:
            keys = [k for slug in any_features for k in key_variants(slug, ("features", "amenities"))]
            query = query.filter(Prop.id.in_(self._props_with_keys(keys)))

        without = criteria.get("without_features") or []
        if without:
            keys = [k for slug in without for k in key_variants(slug, ("features", "amenities"))]
            query = query.filter(~Prop.id.in_(self._props_with_keys(keys)))

        if criteria.get("locality"):
            query = query.filter(self._slug_of(Prop.city) == criteria["locality"])
        if criteria.get("zone"):
            query = query.filter(self._slug_of(Prop.region) == criteria["zone"])

        if criteria.get("highlighted"):
            query = query.filter(Prop.highlighted.is_(True))

        return query

    @staticmethod
    def _key_match(column, slug: str):
        clauses = []
        for variant in key_variants(slug):
            clauses.append(column == variant)
            clauses.append(column.like(f"%.{variant}"))
        return or_(*clauses)

    @staticmethod
    def _slug_of(column):
        return func.lower(func.replace(func.trim(column), " ", "-"))

    @staticmethod
    def _props_with_keys(keys: List[str]):
        return select(Feature.prop_id).where(Feature.feature_key.in_(keys))

    def ordered(self, query: Query, sort: Optional[str], operation: str) -> Query:
        price = self.price_column(operation)
        if sort == "price-asc":
            return query.order_by(price.asc(), Prop.id.asc())
        if sort == "price-desc":
            return query.order_by(price.desc(), Prop.id.desc())
        if sort == "oldest":
            return query.order_by(Prop.created_at.asc(), Prop.id.asc())
        return query.order_by(Prop.created_at.desc(), Prop.id.desc())

    def search(self, criteria: Mapping[str, Any], operation: str = "for_sale",
               per_page: int = DEFAULT_PER_PAGE, with_facets: bool = True) -> Dict[str, Any]:
        if operation not in OPERATIONS:
            operation = "for_sale"
        per_page = max(1, min(per_page, MAX_PER_PAGE))
        page = max(1, int(criteria.get("page") or 1))

        query = self.filtered(criteria, operation)
        total = query.count()
        properties = (
            self.ordered(query, criteria.get("sort"), operation)
            .offset((page - 1) * per_page)
            .limit(per_page)
            .all()
        )

        result = {
            "properties": properties,
            "total": total,
            "page": page,
            "per_page": per_page,
            "total_pages": max(1, math.ceil(total / per_page)),
            "operation": operation,
        }
        if with_facets:
            result["facets"] = self.facets(query)
        logger.debug(f"Search on website {self.website.id}: {dict(criteria)} -> {total} results")
        return result

    # Facets

    def facets(self, query: Query) -> Dict[str, List[dict]]:
        return {
            "property_types": self._column_facet(query, Prop.prop_type_key, "property-types"),
            "property_states": self._column_facet(query, Prop.prop_state_key, "property-states"),
            "features": self._feature_facet(query, "property-features"),
            "bedrooms": self._count_facet(query, Prop.count_bedrooms),
            "bathrooms": self._count_facet(query, Prop.count_bathrooms),
        }

    def _field_keys(self, tag: str) -> List[FieldKey]:
        return (
            for_website(self.db, FieldKey, self.website.id)
            .filter(FieldKey.tag == tag, FieldKey.visible.is_(True))
            .order_by(FieldKey.global_key)
            .all()
        )

    def _facet_list(self, tag: str, counts: Mapping[str, int]) -> List[dict]:
        items = [
            {
                "global_key": fk.global_key,
                "value": fk.global_key,
                "label": fk.label or humanize_key(fk.global_key),
                "count": counts.get(fk.global_key, 0),
            }
            for fk in self._field_keys(tag)
        ]
        return sorted(items, key=lambda f: (-f["count"], f["label"].lower()))

    def _column_facet(self, query: Query, column, tag: str) -> List[dict]:
        rows = query.with_entities(column, func.count(Prop.id)).group_by(column).all()
        return self._facet_list(tag, {key: count for key, count in rows if key})

    def _feature_facet(self, query: Query, tag: str) -> List[dict]:
        matching = query.with_entities(Prop.id).statement
        rows = (
            self.db.query(Feature.feature_key, func.count(Feature.id))
            .filter(Feature.prop_id.in_(matching))
            .group_by(Feature.feature_key)
            .all()
        )
        return self._facet_list(tag, dict(rows))

    @staticmethod
    def _count_facet(query: Query, column) -> List[dict]:
        rows = (
            query.filter(column.isnot(None))
            .with_entities(column, func.count(Prop.id))
            .group_by(column)
            .all()
        )
        facet = []
        for value, count in sorted(rows, key=lambda r: float(r[0])):
            label = str(int(value)) if float(value).is_integer() else str(value)
            facet.append({"value": label, "label": label, "count": count})
        return facet
