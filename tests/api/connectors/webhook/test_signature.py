"""Testes de verificação de assinatura de webhooks."""

from __future__ import annotations

import base64
import hashlib
import hmac

import pytest

from api.connectors.webhook import (
    SecretConfig,
    SignatureErrorCode,
    SignatureKind,
    generate_signature,
    resolve_signature_kind,
    verify_webhook_signature,
)

BODY = b'{"object":"page","entry":[]}'
FORM = b"MessageSid=SM1&From=%2B12345678901&Body=Hi"
URL = "https://inbox.example.com/webhooks/sms"
NOW = 1773144000
CONFIG = SecretConfig(secret="s3cret")


class TestResolveKind:
    @pytest.mark.parametrize(
        ("alias", "kind"),
        [
            ("twilio_sms", SignatureKind.TWILIO),
            ("WhatsApp", SignatureKind.META),
            ("instagram", SignatureKind.META),
            ("gmail", SignatureKind.GOOGLE),
            ("slack", SignatureKind.SLACK),
            ("acme_crm", SignatureKind.GENERIC),
        ],
    )
    def test_aliases(self, alias: str, kind: SignatureKind) -> None:
        assert resolve_signature_kind(alias) == kind


class TestRoundTrip:
    """Assinatura gerada deve ser aceita pelo verificador do mesmo esquema."""

    @pytest.mark.parametrize(
        ("kind", "header", "body"),
        [
            ("meta", "X-Hub-Signature-256", BODY),
            ("gmail", "X-Goog-Channel-Token", BODY),
            ("acme_crm", "X-Signature", BODY),
        ],
    )
    def test_body_only_schemes(self, kind: str, header: str, body: bytes) -> None:
        signature = generate_signature(kind, body, CONFIG)

        result = verify_webhook_signature(kind, body, {header: signature}, CONFIG)

        assert result.valid is True
        assert result.error is None

    def test_twilio_signs_url_and_body(self) -> None:
        signature = generate_signature("twilio_sms", FORM, CONFIG, URL)

        ok = verify_webhook_signature(
            "twilio_sms", FORM, {"X-Twilio-Signature": signature}, CONFIG, URL
        )
        other_url = verify_webhook_signature(
            "twilio_sms", FORM, {"X-Twilio-Signature": signature}, CONFIG, URL + "/x"
        )

        assert ok.valid is True
        assert other_url.valid is False
        assert other_url.error_code == SignatureErrorCode.INVALID_SIGNATURE

    def test_slack_within_tolerance(self) -> None:
        signature = generate_signature("slack", BODY, CONFIG, timestamp=NOW - 10)
        headers = {"X-Slack-Signature": signature, "X-Slack-Request-Timestamp": str(NOW - 10)}

        result = verify_webhook_signature("slack", BODY, headers, CONFIG, now=NOW)

        assert result.valid is True
        assert result.timestamp == NOW - 10

    def test_generic_base64_sha1(self) -> None:
        config = SecretConfig(secret="s3cret", algorithm="sha1", encoding="base64")
        signature = generate_signature("acme_crm", BODY, config)

        result = verify_webhook_signature("acme_crm", BODY, {"X-Webhook-Signature": signature}, config)

        assert result.valid is True

    def test_generic_accepts_algorithm_prefix(self) -> None:
        digest = hmac.new(b"s3cret", BODY, hashlib.sha256).hexdigest()

        result = verify_webhook_signature(
            "acme_crm", BODY, {"x-signature": f"sha256={digest}"}, CONFIG
        )

        assert result.valid is True


class TestRejections:
    def test_stale_slack_request(self) -> None:
        """HMAC correto, mas timestamp fora da tolerância."""
        signature = generate_signature("slack", BODY, CONFIG, timestamp=NOW - 400)
        headers = {"X-Slack-Signature": signature, "X-Slack-Request-Timestamp": str(NOW - 400)}

        result = verify_webhook_signature("slack", BODY, headers, CONFIG, now=NOW)

        assert result.valid is False
        assert result.error_code == SignatureErrorCode.STALE_REQUEST
        assert "Request too old" in result.error

    def test_slack_missing_timestamp(self) -> None:
        signature = generate_signature("slack", BODY, CONFIG, timestamp=NOW)

        result = verify_webhook_signature(
            "slack", BODY, {"X-Slack-Signature": signature}, CONFIG, now=NOW
        )

        assert result.error_code == SignatureErrorCode.MISSING_TIMESTAMP

    def test_tampered_body(self) -> None:
        signature = generate_signature("meta", BODY, CONFIG)

        result = verify_webhook_signature(
            "meta", BODY + b" ", {"X-Hub-Signature-256": signature}, CONFIG
        )

        assert result.valid is False
        assert result.error_code == SignatureErrorCode.INVALID_SIGNATURE

    @pytest.mark.parametrize("header", ["sha256=zz-not-hex", "sha256=", "garbage"])
    def test_malformed_signature_never_raises(self, header: str) -> None:
        result = verify_webhook_signature("meta", BODY, {"X-Hub-Signature-256": header}, CONFIG)

        assert result.valid is False

    def test_malformed_base64_twilio(self) -> None:
        result = verify_webhook_signature(
            "twilio_sms", FORM, {"X-Twilio-Signature": "%%%"}, CONFIG, URL
        )

        assert result.error_code == SignatureErrorCode.INVALID_SIGNATURE

    def test_missing_header(self) -> None:
        result = verify_webhook_signature("meta", BODY, {}, CONFIG)

        assert result.error_code == SignatureErrorCode.MISSING_SIGNATURE
        assert result.provider_id == "meta"

    def test_twilio_without_url_is_configuration_error(self) -> None:
        signature = base64.b64encode(b"x").decode()

        result = verify_webhook_signature(
            "twilio_sms", FORM, {"X-Twilio-Signature": signature}, CONFIG
        )

        assert result.error_code == SignatureErrorCode.CONFIGURATION_ERROR

    def test_empty_secret_is_configuration_error(self) -> None:
        result = verify_webhook_signature(
            "meta", BODY, {"X-Hub-Signature-256": "sha256=00"}, SecretConfig(secret="")
        )

        assert result.error_code == SignatureErrorCode.CONFIGURATION_ERROR

    def test_unknown_algorithm(self) -> None:
        config = SecretConfig(secret="s3cret", algorithm="crc32")

        result = verify_webhook_signature("acme_crm", BODY, {"X-Signature": "00"}, config)

        assert result.error_code == SignatureErrorCode.CONFIGURATION_ERROR
        with pytest.raises(ValueError):
            generate_signature("acme_crm", BODY, config)

    def test_wrong_google_token(self) -> None:
        result = verify_webhook_signature(
            "gmail", BODY, {"X-Goog-Channel-Token": "other"}, CONFIG
        )

        assert result.valid is False
