"""
Parsing and generation of SEO-friendly search URL parameters.

``?type=apartment&bedrooms=2&features=pool,garden&without_features=lift&sort=price-asc``
"""

import re
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import quote_plus

VALID_SORTS = ("price-asc", "price-desc", "newest", "oldest")
VALID_VIEWS = ("grid", "list", "map")

PARAM_MAPPING = {
    "type": "property_type",
    "state": "property_state",
    "bedrooms": "bedrooms",
    "bathrooms": "bathrooms",
    "price_min": "price_min",
    "price_max": "price_max",
    "features": "features",
    "any_features": "any_features",
    "without_features": "without_features",
    "zone": "zone",
    "locality": "locality",
    "sort": "sort",
    "view": "view",
    "page": "page",
}
CRITERIA_TO_PARAM = {criteria: param for param, criteria in PARAM_MAPPING.items()}

NUMERIC_PARAMS = ("bedrooms", "bathrooms", "price_min", "price_max")
FEATURE_PARAMS = ("features", "any_features", "without_features")

_LEGACY_KEY = re.compile(r"^search\[(\w+)\](\[\])?$")


def normalize_slug(value: Any) -> Optional[str]:
    """Lowercase, hyphenate whitespace and drop anything outside ``[a-z0-9-]``."""
    if value is None:
        return None
    slug = str(value).lower().strip()
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"[^a-z0-9\-]", "", slug)
    return slug or None


def _leading_int(value: Any) -> int:
    match = re.match(r"\s*(-?\d+)", str(value))
    return int(match.group(1)) if match else 0


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, (list, tuple)):
        return len(value) > 0
    return str(value).strip() != ""


def _legacy_params(params: Mapping[str, Any]) -> Dict[str, Any]:
    """Collect ``search[...]`` params, either nested or as flat query keys."""
    nested = params.get("search")
    legacy: Dict[str, Any] = dict(nested) if isinstance(nested, Mapping) else {}
    for key, value in params.items():
        match = _LEGACY_KEY.match(str(key))
        if match:
            legacy[match.group(1)] = value
    return legacy


def from_url_params(params: Mapping[str, Any]) -> Dict[str, Any]:
    """Turn request query params into search criteria."""
    criteria: Dict[str, Any] = {}

    if _present(params.get("type")):
        criteria["property_type"] = normalize_slug(params["type"])

    if _present(params.get("state")):
        criteria["property_state"] = normalize_slug(params["state"])

    for name in NUMERIC_PARAMS:
        value = params.get(name)
        if not _present(value):
            continue
        digits = re.sub(r"[^\d]", "", str(value))
        parsed = int(digits) if digits else 0
        if parsed > 0:
            criteria[name] = parsed

    for name in FEATURE_PARAMS:
        if _present(params.get(name)):
            features = [normalize_slug(f) for f in str(params[name]).split(",")]
            features = [f for f in features if f]
            if features:
                criteria[name] = features

    for name in ("zone", "locality"):
        if _present(params.get(name)):
            criteria[name] = normalize_slug(params[name])

    if _present(params.get("sort")):
        sort = str(params["sort"]).lower()
        if sort in VALID_SORTS:
            criteria["sort"] = sort

    if _present(params.get("view")):
        view = str(params["view"]).lower()
        if view in VALID_VIEWS:
            criteria["view"] = view

    if _present(params.get("page")):
        page = _leading_int(params["page"])
        if page > 0:
            criteria["page"] = page

    legacy = _legacy_params(params)
    if legacy:
        _apply_legacy(legacy, criteria)

    return {key: value for key, value in criteria.items() if value is not None}


def _apply_legacy(search: Mapping[str, Any], criteria: Dict[str, Any]) -> None:
    """Older ``search[...]`` params only fill criteria not already set."""
    if _present(search.get("property_type")) and criteria.get("property_type") is None:
        criteria["property_type"] = normalize_slug(search["property_type"])

    if _present(search.get("count_bedrooms")) and criteria.get("bedrooms") is None:
        criteria["bedrooms"] = _leading_int(search["count_bedrooms"])

    if _present(search.get("count_bathrooms")) and criteria.get("bathrooms") is None:
        criteria["bathrooms"] = _leading_int(search["count_bathrooms"])

    if _present(search.get("for_sale_price_from")) and criteria.get("price_min") is None:
        criteria["price_min"] = _leading_int(search["for_sale_price_from"])

    if _present(search.get("for_sale_price_till")) and criteria.get("price_max") is None:
        criteria["price_max"] = _leading_int(search["for_sale_price_till"])

    if _present(search.get("features")) and criteria.get("features") is None:
        raw = search["features"]
        values = raw if isinstance(raw, (list, tuple)) else [raw]
        features = [f for f in (normalize_slug(v) for v in values) if f]
        if features:
            criteria["features"] = features


def to_url_params(criteria: Mapping[str, Any]) -> str:
    """Serialize criteria to a stable, sorted query string."""
    params: Dict[str, str] = {}
    for key, value in criteria.items():
        if value is None or value == "" or (isinstance(value, (list, tuple)) and not value):
            continue
        url_key = CRITERIA_TO_PARAM.get(key, str(key))
        if key in FEATURE_PARAMS:
            values: List[Any] = list(value) if isinstance(value, (list, tuple)) else [value]
            params[url_key] = ",".join(sorted(str(v) for v in values))
        else:
            params[url_key] = str(value)

    return "&".join(f"{k}={quote_plus(v)}" for k, v in sorted(params.items()))


def canonical_url(criteria: Mapping[str, Any], locale: str, operation: str, host: Optional[str] = None) -> str:
    """Canonical listing URL; the first page is never part of it."""
    clean = {
        key: value for key, value in criteria.items()
        if not (key == "page" and _leading_int(value) <= 1)
    }
    query_string = to_url_params(clean)
    path = f"/{locale}/{operation}"
    if query_string:
        path += f"?{query_string}"
    if host:
        return f"https://{host}{path}"
    return path
