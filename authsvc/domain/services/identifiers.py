from __future__ import annotations

import re


EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^(\+91|91)?[6-9]\d{9}$")

NATIONAL_NUMBER_LENGTH = 10


def is_email(identifier: str) -> bool:
    return bool(EMAIL_RE.match(identifier))


def is_valid_phone(phone: str) -> bool:
    return bool(PHONE_RE.match(phone))


def normalize_email(email: str) -> str:
    return email.strip().lower()


def national_number(phone: str, *, country_code: str) -> str:
    """Strip a leading +<cc> or <cc> when what remains is a national number."""
    digits = phone.strip()
    if digits.startswith("+"):
        digits = digits[1:]
    if digits.startswith(country_code) and len(digits) - len(country_code) == NATIONAL_NUMBER_LENGTH:
        return digits[len(country_code):]
    return digits


def phone_lookup_candidates(phone: str, *, country_code: str) -> list[str]:
    """Representations a stored phone may have been saved under.

    Lookups OR across all of them instead of normalizing what is stored.
    """
    raw = phone.strip()
    bare = national_number(raw, country_code=country_code)
    candidates = [raw, bare, f"+{country_code}{bare}", f"{country_code}{bare}"]
    return list(dict.fromkeys(candidates))
