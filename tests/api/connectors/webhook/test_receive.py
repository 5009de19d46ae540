"""Testes de parse do webhook (assinatura + corpo)."""

from __future__ import annotations

import json

import pytest

from api.connectors.webhook import (
    InvalidPayloadError,
    InvalidSignatureError,
    MissingSignatureError,
    SecretConfig,
    WebhookConfigurationError,
    decode_webhook_body,
    generate_signature,
    parse_webhook_request,
)

CONFIG = SecretConfig(secret="secret")


def _meta_headers(body: bytes) -> dict[str, str]:
    return {"X-Hub-Signature-256": generate_signature("whatsapp", body, CONFIG)}


def test_parse_webhook_request_ok() -> None:
    body = json.dumps({"entry": []}).encode("utf-8")

    payload, result = parse_webhook_request("whatsapp", body, _meta_headers(body), CONFIG)

    assert payload == {"entry": []}
    assert result.valid is True


def test_parse_webhook_request_form_body() -> None:
    body = b"MessageSid=SM1&Body=Oi"
    url = "https://inbox.example.com/sms"
    headers = {
        "X-Twilio-Signature": generate_signature("twilio_sms", body, CONFIG, url),
        "Content-Type": "application/x-www-form-urlencoded",
    }

    payload, _ = parse_webhook_request("twilio_sms", body, headers, CONFIG, url)

    assert payload == {"MessageSid": "SM1", "Body": "Oi"}


def test_parse_webhook_request_invalid_signature() -> None:
    body = json.dumps({"entry": []}).encode("utf-8")

    with pytest.raises(InvalidSignatureError):
        parse_webhook_request("whatsapp", body, {"x-hub-signature-256": "sha256=deadbeef"}, CONFIG)


def test_parse_webhook_request_missing_signature() -> None:
    with pytest.raises(MissingSignatureError):
        parse_webhook_request("whatsapp", b"{}", {}, CONFIG)


def test_parse_webhook_request_configuration_error() -> None:
    with pytest.raises(WebhookConfigurationError):
        parse_webhook_request("whatsapp", b"{}", {"x-hub-signature-256": "x"}, SecretConfig(""))


def test_parse_webhook_request_invalid_json() -> None:
    body = b"{invalid}"

    with pytest.raises(InvalidPayloadError, match="invalid_json"):
        parse_webhook_request("whatsapp", body, _meta_headers(body), CONFIG)


class TestDecodeWebhookBody:
    def test_json_array_is_rejected(self) -> None:
        with pytest.raises(InvalidPayloadError, match="payload_not_object"):
            decode_webhook_body(b"[1]", "application/json")

    def test_form_detected_without_content_type(self) -> None:
        assert decode_webhook_body(b"a=1&b=") == {"a": "1", "b": ""}

    def test_empty_body_is_empty_object(self) -> None:
        assert decode_webhook_body(b"", "application/json") == {}

    def test_invalid_utf8(self) -> None:
        with pytest.raises(InvalidPayloadError, match="invalid_encoding"):
            decode_webhook_body(b"\xff\xfe", None)
