"""Tests for listing and filter models."""

from datetime import date

import pytest
from pydantic import ValidationError

from listings.models import SearchFilters, StandardListing, clamp_score


class TestSearchFilters:
    def test_location_is_required(self):
        with pytest.raises(ValidationError):
            SearchFilters(location="   ")

    def test_location_whitespace_is_collapsed(self):
        filters = SearchFilters(location="  Leeds   city centre ")
        assert filters.location == "Leeds city centre"

    def test_price_bounds_given_backwards_are_swapped(self):
        filters = SearchFilters(location="Leeds", min_price=900, max_price=500)
        assert filters.min_price == 500
        assert filters.max_price == 900

    def test_negative_price_rejected(self):
        with pytest.raises(ValidationError):
            SearchFilters(location="Leeds", max_price=-1)

    def test_unknown_property_type_rejected(self):
        with pytest.raises(ValidationError):
            SearchFilters(location="Leeds", property_type="castle")

    def test_available_from_parses_iso_date(self):
        filters = SearchFilters(location="Leeds", available_from="2026-09-01")
        assert filters.available_from == date(2026, 9, 1)


class TestStandardListing:
    def test_id_is_prefixed_with_source(self):
        listing = StandardListing(id="42", source="zoopla", title="Flat", price=800, location="Leeds")
        assert listing.id == "zoopla-42"

    def test_already_prefixed_id_is_kept(self):
        listing = StandardListing(id="zoopla-42", source="zoopla", title="Flat", price=800, location="Leeds")
        assert listing.id == "zoopla-42"

    def test_scores_are_clamped(self):
        listing = StandardListing(
            id="1", source="s", title="t", price=1, location="l",
            quality_score=150, suitability_score=-20,
        )
        assert listing.quality_score == 100
        assert listing.suitability_score == 0

    def test_listing_is_frozen(self, make_listing):
        listing = make_listing()
        with pytest.raises(ValidationError):
            listing.price = 1

    def test_combined_score(self, make_listing):
        listing = make_listing(quality_score=60, suitability_score=75)
        assert listing.combined_score == 135


class TestClampScore:
    @pytest.mark.parametrize(
        "value,expected",
        [(-5, 0), (0, 0), (55.4, 55), (100, 100), (101, 100), ("x", 0), (None, 0)],
    )
    def test_clamp(self, value, expected):
        assert clamp_score(value) == expected
