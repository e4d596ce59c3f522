"""Tests for raw field parsing and item normalization."""

from datetime import date

import pytest

from listings.normalizers import normalize_generic_items, normalize_items_for_source, normalize_listing
from listings.utils.parsing import (
    parse_bills_included,
    parse_date,
    parse_furnished,
    parse_price,
    parse_property_type,
    parse_string_list,
)
from listings.utils.url import canonicalize_url


class TestParsing:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("£1,250 pcm", (1250.0, "monthly")),
            ("£150 pw", (150.0, "weekly")),
            ("£95 per week", (95.0, "weekly")),
            (700, (700.0, "monthly")),
            ({"amount": 120, "frequency": "weekly"}, (120.0, "weekly")),
            ("POA", (None, "monthly")),
        ],
    )
    def test_parse_price(self, value, expected):
        assert parse_price(value) == expected

    def test_parse_furnished(self):
        assert parse_furnished("Furnished") is True
        assert parse_furnished("Unfurnished") is False
        assert parse_furnished("Part furnished") is True
        assert parse_furnished(None) is False

    def test_parse_bills(self):
        assert parse_bills_included("Bills included") is True
        assert parse_bills_included("Bills not included") is False
        assert parse_bills_included(True) is True

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("Apartment", "flat"),
            ("Studio flat", "studio"),
            ("Large flat share", "shared"),
            ("Double room", "room"),
            ("Semi-detached house", "house"),
            ("Boat", None),
        ],
    )
    def test_parse_property_type(self, value, expected):
        assert parse_property_type(value) == expected

    def test_parse_date(self):
        assert parse_date("2026-09-01") == date(2026, 9, 1)
        assert parse_date("01/09/2026") == date(2026, 9, 1)
        assert parse_date("Available now") is None

    def test_parse_string_list(self):
        assert parse_string_list("Garden, Parking ,") == ["Garden", "Parking"]
        assert parse_string_list([{"url": "a.jpg"}, "b.jpg", "a.jpg"]) == ["a.jpg", "b.jpg"]


class TestCanonicalizeUrl:
    def test_strips_tracking_and_fragment(self):
        url = canonicalize_url("http://www.zoopla.co.uk/to-rent/details/123/?utm_source=x&b=2&a=1#photos")
        assert url == "https://www.zoopla.co.uk/to-rent/details/123?a=1&b=2"

    def test_relative_link_needs_base(self):
        assert canonicalize_url("/rooms/9") == ""
        assert canonicalize_url("/rooms/9", base_url="https://www.spareroom.co.uk") == (
            "https://www.spareroom.co.uk/rooms/9"
        )


class TestNormalizeListing:
    def test_full_item(self):
        item = {
            "id": 77,
            "title": "Two bed flat near campus",
            "price": "£950 pcm",
            "address": "Hyde Park, Leeds",
            "postcode": "LS6",
            "bedrooms": "2",
            "bathrooms": 1,
            "propertyType": "Apartment",
            "furnishing": "Furnished",
            "billsIncluded": "Bills included",
            "features": ["Garden", "Near university"],
            "images": [{"url": "https://img.example.com/1.jpg"}],
            "url": "https://www.openrent.co.uk/77?utm_campaign=x",
            "latitude": 53.8,
            "longitude": -1.57,
            "contact": {"name": "Jo", "phone": 7700900123, "verified": True},
        }
        listing = normalize_listing(item, "openrent")

        assert listing.id == "openrent-77"
        assert listing.price == 950
        assert listing.price_period == "monthly"
        assert listing.location == "Hyde Park, Leeds"
        assert listing.bedrooms == 2
        assert listing.property_type == "flat"
        assert listing.furnished is True
        assert listing.bills.included is True
        assert listing.features == ("Garden", "Near university")
        assert listing.source_url == "https://www.openrent.co.uk/77"
        assert listing.coordinates.lat == pytest.approx(53.8)
        assert listing.contact.phone == "7700900123"
        assert listing.contact.verified is True

    @pytest.mark.parametrize(
        "item",
        [
            {"title": "No id", "price": 500},
            {"id": 1, "price": 500},
            {"id": 1, "title": "No price"},
            "not a dict",
        ],
    )
    def test_unusable_items_are_skipped(self, item):
        assert normalize_listing(item, "openrent") is None

    def test_generic_items_skip_bad_rows(self):
        items = [
            {"id": 1, "title": "Room", "price": 400, "location": "York"},
            {"id": 2, "title": "Broken", "price": 500, "location": "York", "latitude": 999, "longitude": 0},
            {"id": 3},
        ]
        listings = normalize_generic_items(items, "gumtree")
        assert [item.id for item in listings] == ["gumtree-1", "gumtree-2"]
        assert listings[1].coordinates is None

    def test_spareroom_items(self):
        items = [
            {
                "advertId": "sr-1",
                "title": "Double room, bills inc",
                "price": "£600",
                "pricePer": "pcm",
                "neighbourhood": "Withington",
                "billsInc": "Yes",
                "url": "/flatshare/flatshare_detail.pl?flatshare_id=1",
            }
        ]
        [listing] = normalize_items_for_source("spareroom", items)
        assert listing.id == "spareroom-sr-1"
        assert listing.property_type == "room"
        assert listing.bedrooms == 1
        assert listing.location == "Withington"
        assert listing.bills.included is True
        assert listing.source_url.startswith("https://www.spareroom.co.uk/flatshare/")

    def test_spareroom_null_fields_use_actor_fallbacks(self):
        items = [
            {
                "id": None,
                "advertId": 7,
                "title": "Single room",
                "price": 450,
                "location": None,
                "neighbourhood": "Rusholme",
                "bedrooms": None,
            }
        ]
        [listing] = normalize_items_for_source("spareroom", items)
        assert listing.id == "spareroom-7"
        assert listing.location == "Rusholme"
        assert listing.bedrooms == 1
