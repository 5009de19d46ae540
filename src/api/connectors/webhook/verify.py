"""Verificação de assinatura do webhook exigida pela Meta (hub.challenge)."""

from __future__ import annotations

import hmac
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping


class WebhookChallengeError(ValueError):
    """Erro de verificação do desafio do webhook."""


def verify_webhook_challenge(
    params: Mapping[str, str],
    expected_token: str | None,
) -> str:
    """Valida o handshake de inscrição e retorna o desafio a responder.

    Args:
        params: Query params (hub.mode, hub.verify_token, hub.challenge)
        expected_token: Token configurado no servidor

    Raises:
        WebhookChallengeError: Se token estiver ausente ou inválido
    """
    if not expected_token:
        raise WebhookChallengeError("missing_verify_token")

    received = params.get("hub.verify_token") or ""
    if params.get("hub.mode") != "subscribe" or not hmac.compare_digest(
        received.encode("utf-8"), expected_token.encode("utf-8")
    ):
        raise WebhookChallengeError("verification_failed")

    return params.get("hub.challenge") or ""
