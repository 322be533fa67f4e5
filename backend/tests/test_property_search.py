"""Tests for public property search."""

from datetime import datetime, timedelta

import pytest

from pwb.models import Feature, FieldKey
from pwb.services.property_search import PropertySearch, key_variants, subunit_to_unit


@pytest.fixture
def listings(db, website, other_website, make_prop):
    now = datetime.utcnow()
    flat = make_prop(website, reference="FLAT", price_sale_current_cents=200_000_00, count_bedrooms=2,
                     created_at=now - timedelta(days=3))
    villa = make_prop(website, reference="VILLA", prop_type_key="types.villa", price_sale_current_cents=900_000_00,
                      count_bedrooms=5, count_bathrooms=3, city="San Pedro", created_at=now - timedelta(days=1))
    rental = make_prop(website, reference="RENT", for_sale=False, for_rent_long_term=True,
                       price_rental_monthly_current_cents=1_500_00, price_rental_monthly_for_search_cents=1_500_00)
    hidden = make_prop(website, reference="HIDDEN", visible=False)
    foreign = make_prop(other_website, reference="OTHER")

    villa.features = [Feature(feature_key="features.pool"), Feature(feature_key="features.garden")]
    flat.features = [Feature(feature_key="features.terrace")]
    db.add_all([
        FieldKey(website_id=website.id, global_key="types.apartment", tag="property-types", label="Apartment"),
        FieldKey(website_id=website.id, global_key="types.villa", tag="property-types", label="Villa"),
        FieldKey(website_id=website.id, global_key="features.pool", tag="property-features", label="Pool"),
        FieldKey(website_id=website.id, global_key="features.garden", tag="property-features"),
    ])
    db.commit()
    return {"flat": flat, "villa": villa, "rental": rental, "hidden": hidden, "foreign": foreign}


def references(result):
    return [p.reference for p in result["properties"]]


class TestFilters:
    """Test search filters."""

    def test_only_visible_sale_listings_of_the_website(self, db, website, listings):
        result = PropertySearch(db, website).search({})

        assert sorted(references(result)) == ["FLAT", "VILLA"]
        assert result["total"] == 2

    def test_rentals(self, db, website, listings):
        result = PropertySearch(db, website).search({}, operation="for_rent")
        assert references(result) == ["RENT"]

    def test_unknown_operation_defaults_to_sale(self, db, website, listings):
        assert PropertySearch(db, website).search({}, operation="auction")["operation"] == "for_sale"

    def test_property_type_slug(self, db, website, listings):
        result = PropertySearch(db, website).search({"property_type": "villa"})
        assert references(result) == ["VILLA"]

    def test_price_range_in_whole_units(self, db, website, listings):
        result = PropertySearch(db, website).search({"price_min": 100_000, "price_max": 300_000})
        assert references(result) == ["FLAT"]

    def test_rental_price_uses_search_column(self, db, website, listings):
        result = PropertySearch(db, website).search({"price_max": 1_000}, operation="for_rent")
        assert result["total"] == 0

    def test_bedrooms_minimum(self, db, website, listings):
        assert references(PropertySearch(db, website).search({"bedrooms": 3})) == ["VILLA"]

    def test_features_must_all_match(self, db, website, listings):
        search = PropertySearch(db, website)
        assert references(search.search({"features": ["pool", "garden"]})) == ["VILLA"]
        assert search.search({"features": ["pool", "terrace"]})["total"] == 0

    def test_any_and_without_features(self, db, website, listings):
        search = PropertySearch(db, website)
        assert sorted(references(search.search({"any_features": ["pool", "terrace"]}))) == ["FLAT", "VILLA"]
        assert references(search.search({"without_features": ["pool"]})) == ["FLAT"]

    def test_locality_slug(self, db, website, listings):
        assert references(PropertySearch(db, website).search({"locality": "san-pedro"})) == ["VILLA"]


class TestSortingAndPaging:
    def test_price_sorting(self, db, website, listings):
        search = PropertySearch(db, website)
        assert references(search.search({"sort": "price-asc"})) == ["FLAT", "VILLA"]
        assert references(search.search({"sort": "price-desc"})) == ["VILLA", "FLAT"]

    def test_newest_first_by_default(self, db, website, listings):
        assert references(PropertySearch(db, website).search({})) == ["VILLA", "FLAT"]
        assert references(PropertySearch(db, website).search({"sort": "oldest"})) == ["FLAT", "VILLA"]

    def test_pagination(self, db, website, listings):
        result = PropertySearch(db, website).search({"page": 2}, per_page=1)

        assert result["page"] == 2
        assert result["total_pages"] == 2
        assert len(result["properties"]) == 1

    def test_per_page_is_capped(self, db, website, listings):
        assert PropertySearch(db, website).search({}, per_page=1000)["per_page"] == 100


class TestFacets:
    def test_type_facet_counts(self, db, website, listings):
        facets = PropertySearch(db, website).search({})["facets"]

        types = {f["global_key"]: f["count"] for f in facets["property_types"]}
        assert types == {"types.apartment": 1, "types.villa": 1}

    def test_feature_facet_labels(self, db, website, listings):
        features = PropertySearch(db, website).search({})["facets"]["features"]

        garden = next(f for f in features if f["global_key"] == "features.garden")
        assert garden["label"] == "Garden"
        assert garden["count"] == 1

    def test_feature_facet_follows_filters(self, db, website, listings):
        search = PropertySearch(db, website)

        villas = {f["global_key"]: f["count"] for f in search.search({"bedrooms": 3})["facets"]["features"]}
        houses = {f["global_key"]: f["count"] for f in search.search({"property_type": "house"})["facets"]["features"]}

        assert villas == {"features.pool": 1, "features.garden": 1}
        assert houses == {"features.pool": 0, "features.garden": 0}

    def test_bedroom_facet(self, db, website, listings):
        bedrooms = PropertySearch(db, website).search({})["facets"]["bedrooms"]
        assert bedrooms == [
            {"value": "2", "label": "2", "count": 1},
            {"value": "5", "label": "5", "count": 1},
        ]


def test_key_variants():
    assert key_variants("sea-view", ("features",)) == [
        "features.sea-view", "features.sea_view", "sea-view", "sea_view",
    ]


def test_subunit_to_unit():
    assert subunit_to_unit("EUR") == 100
    assert subunit_to_unit("jpy") == 1
