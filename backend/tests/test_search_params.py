"""Tests for search URL parameter parsing and generation."""

from pwb.services.search_params import canonical_url, from_url_params, normalize_slug, to_url_params


class TestFromUrlParams:
    """Test turning query params into criteria."""

    def test_full_query(self):
        criteria = from_url_params({
            "type": "Apartment",
            "bedrooms": "2",
            "price_min": "100,000",
            "features": "pool, Sea View ,",
            "locality": "Costa del Sol",
            "sort": "PRICE-ASC",
            "view": "map",
            "page": "3",
        })

        assert criteria == {
            "property_type": "apartment",
            "bedrooms": 2,
            "price_min": 100000,
            "features": ["pool", "sea-view"],
            "locality": "costa-del-sol",
            "sort": "price-asc",
            "view": "map",
            "page": 3,
        }

    def test_feature_lists_and_state(self):
        criteria = from_url_params({
            "any_features": "Pool,terrace,",
            "without_features": "Lift",
            "state": "New Build",
        })

        assert criteria == {
            "any_features": ["pool", "terrace"],
            "without_features": ["lift"],
            "property_state": "new-build",
        }

    def test_invalid_values_are_dropped(self):
        criteria = from_url_params({"sort": "random", "view": "table", "page": "0", "bedrooms": "none"})
        assert criteria == {}

    def test_blank_values_are_ignored(self):
        assert from_url_params({"type": "  ", "features": ""}) == {}

    def test_legacy_nested_params(self):
        criteria = from_url_params({
            "search": {
                "property_type": "villa",
                "count_bedrooms": "3",
                "for_sale_price_till": "500000",
                "features": ["Pool", "garden"],
            }
        })

        assert criteria == {"property_type": "villa", "bedrooms": 3, "price_max": 500000,
                            "features": ["pool", "garden"]}

    def test_legacy_flat_keys(self):
        assert from_url_params({"search[count_bathrooms]": "2"}) == {"bathrooms": 2}

    def test_new_params_win_over_legacy(self):
        criteria = from_url_params({"type": "house", "search": {"property_type": "villa"}})
        assert criteria["property_type"] == "house"


class TestToUrlParams:
    def test_sorted_and_mapped(self):
        query = to_url_params({"property_type": "villa", "features": ["pool", "garden"], "bedrooms": 2})
        assert query == "bedrooms=2&features=garden%2Cpool&type=villa"

    def test_feature_lists_and_state(self):
        query = to_url_params({
            "any_features": ["terrace", "pool"], "without_features": ["lift"], "property_state": "resale",
        })
        assert query == "any_features=pool%2Cterrace&state=resale&without_features=lift"

    def test_empty_values_skipped(self):
        assert to_url_params({"property_type": None, "features": [], "zone": ""}) == ""

    def test_round_trip_is_stable(self):
        params = "bedrooms=3&sort=price-desc&type=house"
        parsed = from_url_params(dict(p.split("=") for p in params.split("&")))
        assert to_url_params(parsed) == params


class TestCanonicalUrl:
    def test_first_page_is_dropped(self):
        assert canonical_url({"bedrooms": 2, "page": 1}, "en", "buy") == "/en/buy?bedrooms=2"

    def test_later_pages_are_kept(self):
        assert canonical_url({"page": 2}, "es", "rent", host="acme.example.com") == "https://acme.example.com/es/rent?page=2"

    def test_excluded_features_are_kept(self):
        url = canonical_url({"without_features": ["pool"], "page": 1}, "en", "buy")
        assert url == "/en/buy?without_features=pool"

    def test_no_criteria(self):
        assert canonical_url({}, "en", "buy") == "/en/buy"


def test_normalize_slug():
    assert normalize_slug("  Sea View! ") == "sea-view"
    assert normalize_slug("!!!") is None
    assert normalize_slug(None) is None
