"""Tests for submission payload validation."""

import datetime as dt
from decimal import Decimal

import pytest

from marketplace.core.errors import ValidationError
from marketplace.core.workflow import EventRequestInput, SellerApplicationInput, parse_input

from tests.factories import event_fields


def _application(**overrides):
    fields = {
        "business_name": "Acme Events",
        "business_type": "company",
        "website": "https://acme.example.com",
        "experience": "Five years",
        "event_types": "Concerts",
    }
    fields.update(overrides)
    return fields


class TestSellerApplicationInput:

    def test_valid_fields(self):
        data = parse_input(SellerApplicationInput, _application())
        assert data.business_name == "Acme Events"
        assert data.business_type.value == "company"

    def test_blank_website_becomes_none(self):
        assert parse_input(SellerApplicationInput, _application(website="  ")).website is None

    @pytest.mark.parametrize("field", ["business_name", "experience", "event_types"])
    def test_blank_required_field_rejected(self, field):
        with pytest.raises(ValidationError) as exc_info:
            parse_input(SellerApplicationInput, _application(**{field: "   "}))
        assert field in exc_info.value.fields

    def test_unknown_business_type_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_input(SellerApplicationInput, _application(business_type="cartel"))
        assert "business_type" in exc_info.value.fields

    def test_model_instance_passes_through(self):
        data = SellerApplicationInput(**_application())
        assert parse_input(SellerApplicationInput, data) is data


class TestEventRequestInput:

    def test_values_are_parsed(self):
        data = parse_input(EventRequestInput, event_fields(price="49.99", capacity="200", time="19:30"))
        assert data.price == Decimal("49.99")
        assert data.capacity == 200
        assert data.time == dt.time(19, 30)

    def test_category_is_lowercased(self):
        assert parse_input(EventRequestInput, event_fields(category="Music")).category == "music"

    def test_free_event_allowed(self):
        assert parse_input(EventRequestInput, event_fields(price="0")).price == Decimal("0")

    @pytest.mark.parametrize("price", ["-1", "abc", ""])
    def test_bad_price_rejected(self, price):
        with pytest.raises(ValidationError) as exc_info:
            parse_input(EventRequestInput, event_fields(price=price))
        assert "price" in exc_info.value.fields

    @pytest.mark.parametrize("capacity", [0, -5, "many"])
    def test_bad_capacity_rejected(self, capacity):
        with pytest.raises(ValidationError) as exc_info:
            parse_input(EventRequestInput, event_fields(capacity=capacity))
        assert "capacity" in exc_info.value.fields

    def test_missing_fields_all_reported(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_input(EventRequestInput, {"title": "Only a title"})
        assert {"description", "date", "time", "location", "price", "capacity", "category"} <= set(
            exc_info.value.fields
        )

    def test_blank_image_url_becomes_none(self):
        assert parse_input(EventRequestInput, event_fields(image_url="")).image_url is None
