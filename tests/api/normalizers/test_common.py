"""Testes dos helpers compartilhados pelos normalizers."""

from __future__ import annotations

from datetime import UTC

import pytest

from api.normalizers._common import (
    clean_body,
    content_type_from_mime,
    decode_form_payload,
    decode_json_payload,
    parse_event_timestamp,
)
from app.constants.ingestion import ContentType
from app.protocols.normalizer import NormalizationError
from tests.fakes.ingestion import FIXED_NOW


class TestParseTimestamp:
    @pytest.mark.parametrize(
        "value",
        [
            "1773144000",
            1773144000,
            "1773144000000",
            "2026-03-10T12:00:00Z",
            "2026-03-10T09:00:00-03:00",
            "Tue, 10 Mar 2026 12:00:00 +0000",
        ],
    )
    def test_supported_formats(self, value) -> None:
        assert parse_event_timestamp(value) == FIXED_NOW

    @pytest.mark.parametrize("value", [None, "", "not a date", "99999999999999999999"])
    def test_missing_or_unreadable_is_none(self, value) -> None:
        assert parse_event_timestamp(value) is None

    def test_naive_is_utc(self) -> None:
        assert parse_event_timestamp("2026-03-10T12:00:00").tzinfo == UTC


class TestDecoding:
    def test_form_payload(self) -> None:
        assert decode_form_payload(b"From=%2B1234&Body=Oi+tudo") == {
            "From": "+1234",
            "Body": "Oi tudo",
        }

    def test_form_payload_accepts_json(self) -> None:
        assert decode_form_payload('{"From": "+1"}') == {"From": "+1"}

    def test_invalid_json(self) -> None:
        with pytest.raises(NormalizationError):
            decode_json_payload(b"{broken")

    def test_json_must_be_object(self) -> None:
        with pytest.raises(NormalizationError):
            decode_json_payload("[1, 2]")


class TestContent:
    @pytest.mark.parametrize(
        ("mime", "expected"),
        [
            ("image/png", ContentType.IMAGE),
            ("audio/ogg; codecs=opus", ContentType.AUDIO),
            ("video/mp4", ContentType.VIDEO),
            ("application/pdf", ContentType.DOCUMENT),
            (None, ContentType.DOCUMENT),
        ],
    )
    def test_content_type_from_mime(self, mime, expected) -> None:
        assert content_type_from_mime(mime) == expected

    def test_blank_body_is_none(self) -> None:
        assert clean_body("   ") is None
        assert clean_body(" oi ") == " oi "
