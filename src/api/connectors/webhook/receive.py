"""Parse e validação inicial do webhook (sem PII)."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any
from urllib.parse import parse_qsl

from .signature import SignatureErrorCode, SignatureResult, verify_webhook_signature

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .signature import SecretConfig


class WebhookRequestError(ValueError):
    """Erro base para falhas de webhook."""


class MissingSignatureError(WebhookRequestError):
    """Header de assinatura (ou timestamp) ausente."""


class InvalidSignatureError(WebhookRequestError):
    """Assinatura inválida ou request fora da janela de tolerância."""


class WebhookConfigurationError(WebhookRequestError):
    """Configuração do verificador incompleta (secret, URL, algoritmo)."""


class InvalidPayloadError(WebhookRequestError):
    """Corpo do webhook não decodificável."""


def decode_webhook_body(raw_body: bytes, content_type: str | None = None) -> dict[str, Any]:
    """Decodifica JSON ou form-urlencoded em dict.

    Raises:
        InvalidPayloadError: Corpo inválido ou JSON que não é objeto
    """
    try:
        text = raw_body.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise InvalidPayloadError("invalid_encoding") from exc

    is_form = content_type is not None and "form-urlencoded" in content_type.lower()
    looks_like_json = text.lstrip().startswith(("{", "["))
    if is_form or (content_type is None and text.strip() and not looks_like_json):
        return dict(parse_qsl(text, keep_blank_values=True))

    try:
        payload = json.loads(text or "{}")
    except json.JSONDecodeError as exc:
        raise InvalidPayloadError("invalid_json") from exc
    if not isinstance(payload, dict):
        raise InvalidPayloadError("payload_not_object")
    return payload


def raise_for_signature(result: SignatureResult) -> None:
    """Converte SignatureResult inválido na exceção correspondente."""
    if result.valid:
        return
    reason = result.error or "invalid_signature"
    if result.error_code in (
        SignatureErrorCode.MISSING_SIGNATURE,
        SignatureErrorCode.MISSING_TIMESTAMP,
    ):
        raise MissingSignatureError(reason)
    if result.error_code == SignatureErrorCode.CONFIGURATION_ERROR:
        raise WebhookConfigurationError(reason)
    raise InvalidSignatureError(reason)


def parse_webhook_request(
    provider_kind: str,
    raw_body: bytes,
    headers: Mapping[str, str],
    secret_config: SecretConfig,
    webhook_url: str | None = None,
    *,
    now: float | None = None,
) -> tuple[dict[str, Any], SignatureResult]:
    """Valida assinatura e decodifica o corpo do webhook.

    Args:
        provider_kind: Tipo do provedor (twilio_sms, whatsapp, gmail...)
        raw_body: Corpo bruto do request
        headers: Headers recebidos
        secret_config: Secret do verificador
        webhook_url: URL pública (obrigatória para twilio)
        now: Epoch atual (testes)

    Raises:
        MissingSignatureError: Header de assinatura ausente
        InvalidSignatureError: Assinatura inválida
        WebhookConfigurationError: Secret/URL não configurados
        InvalidPayloadError: Corpo não decodificável

    Returns:
        (payload dict, SignatureResult)
    """
    result = verify_webhook_signature(
        provider_kind, raw_body, headers, secret_config, webhook_url, now=now
    )
    raise_for_signature(result)

    content_type = next(
        (value for key, value in headers.items() if key.lower() == "content-type"), None
    )
    return decode_webhook_body(raw_body, content_type), result
