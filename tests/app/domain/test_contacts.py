"""Testes de normalização de contatos."""

from __future__ import annotations

import pytest

from app.constants.ingestion import ContactType
from app.domain.contacts import (
    build_contact,
    fuzzy_search_key,
    normalize_email,
    normalize_phone,
    normalize_social_handle,
    parse_email_address,
    strip_formatting,
)


class TestNormalizePhone:
    """Normalização E.164."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("(234) 567-8901", "+12345678901"),
            ("234.567.8901", "+12345678901"),
            ("+1234567890", "+1234567890"),
            ("+55 11 99999-9999", "+5511999999999"),
            ("5511999999999", "+5511999999999"),
        ],
    )
    def test_formats(self, raw: str, expected: str) -> None:
        assert normalize_phone(raw) == expected

    def test_custom_country_code_only_for_ten_digits(self) -> None:
        assert normalize_phone("1199999999", default_country_code="55") == "+551199999999"
        assert normalize_phone("+1199999999", default_country_code="55") == "+1199999999"

    def test_value_without_digits_is_kept(self) -> None:
        assert normalize_phone("  unknown ") == "unknown"


class TestEmailAndSocial:
    def test_email_display_name_is_removed_and_lowercased(self) -> None:
        assert normalize_email("Sarah Johnson <Sarah.Johnson@Example.COM>") == (
            "sarah.johnson@example.com"
        )

    def test_parse_email_address_splits_name(self) -> None:
        assert parse_email_address("Sarah <s@example.com>") == ("Sarah", "s@example.com")
        assert parse_email_address("s@example.com") == (None, "s@example.com")

    def test_social_handle_strips_at_and_lowercases(self) -> None:
        assert normalize_social_handle(" @Acme_Support ") == "acme_support"


class TestBuildContact:
    def test_contact_keeps_raw_value(self) -> None:
        contact = build_contact("(234) 567-8901", ContactType.PHONE, "twilio")

        assert contact.normalized_value == "+12345678901"
        assert contact.identifier == "+12345678901"
        assert contact.raw_value == "(234) 567-8901"
        assert contact.provider == "twilio"

    def test_same_person_different_formats_compare_equal(self) -> None:
        a = build_contact("(234) 567-8901", ContactType.PHONE, "twilio")
        b = build_contact("+1 234 567 8901", ContactType.PHONE, "whatsapp")
        assert a.normalized_value == b.normalized_value


class TestFuzzyKeys:
    def test_strip_formatting(self) -> None:
        assert strip_formatting("Sarah.Johnson_1") == "sarahjohnson1"

    def test_phone_key_uses_last_ten_digits(self) -> None:
        contact = build_contact("+1 (234) 567-8901", ContactType.PHONE, "twilio")
        assert fuzzy_search_key(contact) == "2345678901"

    def test_email_key_uses_local_part(self) -> None:
        contact = build_contact("Sarah.Johnson@example.com", ContactType.EMAIL, "gmail")
        assert fuzzy_search_key(contact) == "sarahjohnson"
