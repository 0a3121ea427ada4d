from __future__ import annotations

import pytest

from authsvc.domain.services.identifiers import (
    is_email,
    is_valid_phone,
    national_number,
    phone_lookup_candidates,
)


@pytest.mark.parametrize(
    ("identifier", "expected"),
    [
        ("a@b.com", True),
        ("first.last@example.co.in", True),
        ("a@b", False),
        ("a b@c.com", False),
        ("9876543210", False),
    ],
)
def test_is_email(identifier, expected):
    assert is_email(identifier) is expected


@pytest.mark.parametrize(
    ("phone", "expected"),
    [
        ("9876543210", True),
        ("919876543210", True),
        ("+919876543210", True),
        ("5876543210", False),
        ("98765", False),
        ("+19876543210", False),
    ],
)
def test_is_valid_phone(phone, expected):
    assert is_valid_phone(phone) is expected


@pytest.mark.parametrize("phone", ["+919876543210", "919876543210", "9876543210"])
def test_phone_lookup_candidates_cover_every_stored_form(phone):
    candidates = phone_lookup_candidates(phone, country_code="91")

    assert {"+919876543210", "919876543210", "9876543210"} <= set(candidates)
    assert len(candidates) == len(set(candidates))


def test_national_number_keeps_numbers_that_only_look_prefixed():
    assert national_number("9198765432", country_code="91") == "9198765432"
    assert national_number("+919876543210", country_code="91") == "9876543210"



@pytest.mark.parametrize("phone", ["+919876543210", "919876543210", " 9876543210 "])
def test_national_number_is_shared_by_every_format(phone):
    assert national_number(phone, country_code="91") == "9876543210"
