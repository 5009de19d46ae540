"""Verificação de assinatura de webhooks por tipo de provedor.

Esquemas suportados:
    twilio  - X-Twilio-Signature = base64(HMAC-SHA1(secret, url + body))
    meta    - X-Hub-Signature-256 = "sha256=" + hex(HMAC-SHA256(secret, body))
    slack   - X-Slack-Signature = "v0=" + hex(HMAC-SHA256(secret, "v0:{ts}:{body}"))
              com X-Slack-Request-Timestamp dentro da tolerância
    google  - X-Goog-Channel-Token igual ao token configurado
    generic - X-Signature (ou X-Webhook-Signature), algoritmo e encoding
              configuráveis, prefixo "{alg}=" opcional

Toda comparação é em tempo constante. Assinaturas malformadas resultam
em valid=False; a verificação nunca levanta exceção.
"""

from __future__ import annotations

import base64
import binascii
import hmac
import logging
import time
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE_SECONDS = 300

TWILIO_SIGNATURE_HEADER = "x-twilio-signature"
META_SIGNATURE_HEADER = "x-hub-signature-256"
SLACK_SIGNATURE_HEADER = "x-slack-signature"
SLACK_TIMESTAMP_HEADER = "x-slack-request-timestamp"
GOOGLE_TOKEN_HEADER = "x-goog-channel-token"
GENERIC_SIGNATURE_HEADERS = ("x-signature", "x-webhook-signature")

HMAC_ALGORITHMS = frozenset({"md5", "sha1", "sha224", "sha256", "sha384", "sha512"})


class SignatureKind(StrEnum):
    """Esquema de assinatura."""

    TWILIO = "twilio"
    META = "meta"
    SLACK = "slack"
    GOOGLE = "google"
    GENERIC = "generic"


class SignatureErrorCode(StrEnum):
    """Motivo estruturado de uma verificação malsucedida."""

    MISSING_SIGNATURE = "missing_signature"
    MISSING_TIMESTAMP = "missing_timestamp"
    INVALID_SIGNATURE = "invalid_signature"
    STALE_REQUEST = "stale_request"
    CONFIGURATION_ERROR = "configuration_error"


_KIND_ALIASES: dict[str, SignatureKind] = {
    "twilio": SignatureKind.TWILIO,
    "sms": SignatureKind.TWILIO,
    "twilio_sms": SignatureKind.TWILIO,
    "meta": SignatureKind.META,
    "whatsapp": SignatureKind.META,
    "facebook": SignatureKind.META,
    "instagram": SignatureKind.META,
    "messenger": SignatureKind.META,
    "slack": SignatureKind.SLACK,
    "google": SignatureKind.GOOGLE,
    "gmail": SignatureKind.GOOGLE,
    "token": SignatureKind.GOOGLE,
}


@dataclass(frozen=True, slots=True)
class SecretConfig:
    """Secret e parâmetros do verificador.

    algorithm e encoding só se aplicam ao esquema genérico;
    tolerance_seconds só ao esquema com timestamp (slack).
    """

    secret: str
    algorithm: str = "sha256"
    encoding: str = "hex"
    tolerance_seconds: int = DEFAULT_TOLERANCE_SECONDS


@dataclass(frozen=True, slots=True)
class SignatureResult:
    """Resultado da verificação de assinatura."""

    valid: bool
    error: str | None = None
    error_code: SignatureErrorCode | None = None
    provider_id: str | None = None
    timestamp: int | None = None


def resolve_signature_kind(provider_kind: str) -> SignatureKind:
    """Mapeia tipo/alias de provedor para o esquema (fallback: generic)."""
    return _KIND_ALIASES.get(provider_kind.strip().lower(), SignatureKind.GENERIC)


def _lower_headers(headers: Mapping[str, str]) -> dict[str, str]:
    return {key.lower(): value for key, value in headers.items()}


def _as_bytes(raw_body: bytes | str) -> bytes:
    return raw_body.encode("utf-8") if isinstance(raw_body, str) else raw_body


def _hmac(secret: str, message: bytes, algorithm: str) -> bytes:
    return hmac.new(secret.encode("utf-8"), message, algorithm).digest()


def _failure(
    error: str,
    code: SignatureErrorCode,
    provider_id: str,
    timestamp: int | None = None,
) -> SignatureResult:
    return SignatureResult(
        valid=False,
        error=error,
        error_code=code,
        provider_id=provider_id,
        timestamp=timestamp,
    )


def _compare(
    expected: bytes,
    received: bytes | None,
    provider_id: str,
    timestamp: int | None = None,
) -> SignatureResult:
    if received is not None and hmac.compare_digest(expected, received):
        return SignatureResult(valid=True, provider_id=provider_id, timestamp=timestamp)
    return _failure(
        "Invalid signature", SignatureErrorCode.INVALID_SIGNATURE, provider_id, timestamp
    )


def _decode_hex(value: str) -> bytes | None:
    try:
        return bytes.fromhex(value)
    except ValueError:
        return None


def _decode_base64(value: str) -> bytes | None:
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError):
        return None


def _strip_prefix(value: str, prefix: str) -> str:
    if value.lower().startswith(prefix.lower()):
        return value[len(prefix):]
    return value


# ──────────────────────────────────────────────────────────────
# Verificadores por esquema
# ──────────────────────────────────────────────────────────────


def _verify_twilio(
    body: bytes,
    headers: dict[str, str],
    config: SecretConfig,
    webhook_url: str | None,
    provider_id: str,
) -> SignatureResult:
    if not webhook_url:
        return _failure(
            "Webhook URL required", SignatureErrorCode.CONFIGURATION_ERROR, provider_id
        )
    received = headers.get(TWILIO_SIGNATURE_HEADER)
    if not received:
        return _failure(
            "Missing X-Twilio-Signature header", SignatureErrorCode.MISSING_SIGNATURE, provider_id
        )
    expected = _hmac(config.secret, webhook_url.encode("utf-8") + body, "sha1")
    return _compare(expected, _decode_base64(received.strip()), provider_id)


def _verify_meta(
    body: bytes,
    headers: dict[str, str],
    config: SecretConfig,
    provider_id: str,
) -> SignatureResult:
    received = headers.get(META_SIGNATURE_HEADER)
    if not received:
        return _failure(
            "Missing X-Hub-Signature-256 header", SignatureErrorCode.MISSING_SIGNATURE, provider_id
        )
    expected = _hmac(config.secret, body, "sha256")
    return _compare(expected, _decode_hex(_strip_prefix(received.strip(), "sha256=")), provider_id)


def _verify_slack(
    body: bytes,
    headers: dict[str, str],
    config: SecretConfig,
    provider_id: str,
    now: float | None,
) -> SignatureResult:
    received = headers.get(SLACK_SIGNATURE_HEADER)
    if not received:
        return _failure(
            "Missing X-Slack-Signature header", SignatureErrorCode.MISSING_SIGNATURE, provider_id
        )
    raw_timestamp = headers.get(SLACK_TIMESTAMP_HEADER)
    if not raw_timestamp:
        return _failure(
            "Missing X-Slack-Request-Timestamp header",
            SignatureErrorCode.MISSING_TIMESTAMP,
            provider_id,
        )
    try:
        timestamp = int(raw_timestamp.strip())
    except ValueError:
        return _failure("Invalid timestamp", SignatureErrorCode.INVALID_SIGNATURE, provider_id)

    current = int(now if now is not None else time.time())
    delta = current - timestamp
    if abs(delta) > config.tolerance_seconds:
        return _failure(
            f"Request too old ({delta}s)", SignatureErrorCode.STALE_REQUEST, provider_id, timestamp
        )

    expected = _hmac(config.secret, _slack_signing_string(timestamp, body), "sha256")
    return _compare(
        expected, _decode_hex(_strip_prefix(received.strip(), "v0=")), provider_id, timestamp
    )


def _slack_signing_string(timestamp: int, body: bytes) -> bytes:
    return f"v0:{timestamp}:".encode() + body


def _verify_google(
    headers: dict[str, str],
    config: SecretConfig,
    provider_id: str,
) -> SignatureResult:
    received = headers.get(GOOGLE_TOKEN_HEADER)
    if not received:
        return _failure(
            "Missing X-Goog-Channel-Token header", SignatureErrorCode.MISSING_SIGNATURE, provider_id
        )
    if hmac.compare_digest(received.encode("utf-8"), config.secret.encode("utf-8")):
        return SignatureResult(valid=True, provider_id=provider_id)
    return _failure("Invalid token", SignatureErrorCode.INVALID_SIGNATURE, provider_id)


def _verify_generic(
    body: bytes,
    headers: dict[str, str],
    config: SecretConfig,
    provider_id: str,
) -> SignatureResult:
    received = next(
        (headers[name] for name in GENERIC_SIGNATURE_HEADERS if headers.get(name)), None
    )
    if not received:
        return _failure(
            "Missing signature header", SignatureErrorCode.MISSING_SIGNATURE, provider_id
        )
    algorithm = config.algorithm.lower()
    if algorithm not in HMAC_ALGORITHMS:
        return _failure(
            f"Unsupported algorithm: {config.algorithm}",
            SignatureErrorCode.CONFIGURATION_ERROR,
            provider_id,
        )

    cleaned = _strip_prefix(received.strip(), f"{algorithm}=")
    decoded = _decode_base64(cleaned) if config.encoding == "base64" else _decode_hex(cleaned)
    return _compare(_hmac(config.secret, body, algorithm), decoded, provider_id)


# ──────────────────────────────────────────────────────────────
# API pública
# ──────────────────────────────────────────────────────────────


def verify_webhook_signature(
    provider_kind: str,
    raw_body: bytes | str,
    headers: Mapping[str, str],
    secret_config: SecretConfig,
    webhook_url: str | None = None,
    *,
    now: float | None = None,
) -> SignatureResult:
    """Verifica a assinatura conforme o esquema do provedor.

    Args:
        provider_kind: Tipo ou alias (twilio_sms, whatsapp, gmail, slack...)
        raw_body: Corpo bruto exatamente como recebido
        headers: Headers do request (lookup case-insensitive)
        secret_config: Secret e parâmetros do verificador
        webhook_url: URL pública exata (obrigatória para twilio)
        now: Epoch atual em segundos (injetável em testes)

    Returns:
        SignatureResult; nunca levanta exceção.
    """
    kind = resolve_signature_kind(provider_kind)
    provider_id = provider_kind.strip().lower()
    lowered = _lower_headers(headers)
    body = _as_bytes(raw_body)

    if not secret_config.secret:
        result = _failure(
            "Secret not configured", SignatureErrorCode.CONFIGURATION_ERROR, provider_id
        )
    elif kind == SignatureKind.TWILIO:
        result = _verify_twilio(body, lowered, secret_config, webhook_url, provider_id)
    elif kind == SignatureKind.META:
        result = _verify_meta(body, lowered, secret_config, provider_id)
    elif kind == SignatureKind.SLACK:
        result = _verify_slack(body, lowered, secret_config, provider_id, now)
    elif kind == SignatureKind.GOOGLE:
        result = _verify_google(lowered, secret_config, provider_id)
    else:
        result = _verify_generic(body, lowered, secret_config, provider_id)

    logger.debug(
        "webhook_signature_checked",
        extra={
            "signature_kind": str(kind),
            "valid": result.valid,
            "error_code": str(result.error_code) if result.error_code else None,
            "payload_length": len(body),
        },
    )
    return result


def generate_signature(
    provider_kind: str,
    raw_body: bytes | str,
    secret_config: SecretConfig,
    webhook_url: str | None = None,
    *,
    timestamp: int | None = None,
) -> str:
    """Gera o valor de header exatamente como o provedor enviaria.

    Raises:
        ValueError: twilio sem webhook_url ou algoritmo genérico inválido
    """
    kind = resolve_signature_kind(provider_kind)
    body = _as_bytes(raw_body)
    secret = secret_config.secret

    if kind == SignatureKind.TWILIO:
        if not webhook_url:
            raise ValueError("webhook_url é obrigatório para assinatura twilio")
        digest = _hmac(secret, webhook_url.encode("utf-8") + body, "sha1")
        return base64.b64encode(digest).decode("ascii")
    if kind == SignatureKind.META:
        return "sha256=" + _hmac(secret, body, "sha256").hex()
    if kind == SignatureKind.SLACK:
        ts = timestamp if timestamp is not None else int(time.time())
        return "v0=" + _hmac(secret, _slack_signing_string(ts, body), "sha256").hex()
    if kind == SignatureKind.GOOGLE:
        return secret

    algorithm = secret_config.algorithm.lower()
    if algorithm not in HMAC_ALGORITHMS:
        raise ValueError(f"Algoritmo não suportado: {secret_config.algorithm}")
    digest = _hmac(secret, body, algorithm)
    if secret_config.encoding == "base64":
        return base64.b64encode(digest).decode("ascii")
    return digest.hex()
