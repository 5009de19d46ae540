"""Webhook: assinatura, handshake, parsing seguro e entrada no pipeline."""

from .event_id import build_raw_message, compute_inbound_event_id, extract_provider_message_id
from .inbound import ingest_webhook
from .receive import (
    InvalidPayloadError,
    InvalidSignatureError,
    MissingSignatureError,
    WebhookConfigurationError,
    WebhookRequestError,
    decode_webhook_body,
    parse_webhook_request,
)
from .signature import (
    SecretConfig,
    SignatureErrorCode,
    SignatureKind,
    SignatureResult,
    generate_signature,
    resolve_signature_kind,
    verify_webhook_signature,
)
from .verify import WebhookChallengeError, verify_webhook_challenge

__all__ = [
    "InvalidPayloadError",
    "InvalidSignatureError",
    "MissingSignatureError",
    "SecretConfig",
    "SignatureErrorCode",
    "SignatureKind",
    "SignatureResult",
    "WebhookChallengeError",
    "WebhookConfigurationError",
    "WebhookRequestError",
    "build_raw_message",
    "compute_inbound_event_id",
    "decode_webhook_body",
    "extract_provider_message_id",
    "generate_signature",
    "ingest_webhook",
    "parse_webhook_request",
    "resolve_signature_kind",
    "verify_webhook_challenge",
    "verify_webhook_signature",
]
