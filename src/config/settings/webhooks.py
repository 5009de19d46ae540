"""Settings de segurança dos webhooks.

Secrets por tipo de verificação de assinatura. Os secrets específicos de
canal (Twilio, Meta, Gmail) vivem nos settings do canal; aqui ficam os
verificadores genéricos e a tolerância de replay.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from config.settings.email import get_email_settings
from config.settings.sms import get_sms_settings
from config.settings.whatsapp import get_whatsapp_settings

VALID_GENERIC_ALGORITHMS = frozenset({"sha1", "sha256", "sha512"})
VALID_GENERIC_ENCODINGS = frozenset({"hex", "base64"})


@dataclass(frozen=True)
class WebhookSecuritySettings:
    """Configurações de verificação de assinatura.

    Attributes:
        sms_auth_token: Secret HMAC-SHA1 do gateway SMS
        meta_app_secret: App secret Meta (WhatsApp/Messenger)
        channel_token: Token literal de canais de notificação (Gmail)
        slack_signing_secret: Signing secret estilo Slack
        generic_secret: Secret do verificador HMAC genérico
        generic_algorithm: Algoritmo do verificador genérico
        generic_encoding: Encoding da assinatura genérica (hex|base64)
        tolerance_seconds: Idade máxima aceita para requests com timestamp
    """

    sms_auth_token: str = ""
    meta_app_secret: str = ""
    channel_token: str = ""
    slack_signing_secret: str = ""
    generic_secret: str = ""
    generic_algorithm: str = "sha256"
    generic_encoding: str = "hex"
    tolerance_seconds: int = 300

    def secret_for(self, kind: str) -> str:
        """Retorna o secret configurado para o tipo de verificação."""
        secrets = {
            "twilio": self.sms_auth_token,
            "meta": self.meta_app_secret,
            "google": self.channel_token,
            "slack": self.slack_signing_secret,
        }
        return secrets.get(kind, self.generic_secret)

    def validate(self) -> list[str]:
        """Valida parâmetros do verificador genérico."""
        errors: list[str] = []
        if self.generic_algorithm not in VALID_GENERIC_ALGORITHMS:
            errors.append(f"WEBHOOK_GENERIC_ALGORITHM inválido: {self.generic_algorithm}")
        if self.generic_encoding not in VALID_GENERIC_ENCODINGS:
            errors.append(f"WEBHOOK_GENERIC_ENCODING inválido: {self.generic_encoding}")
        if self.tolerance_seconds <= 0:
            errors.append("WEBHOOK_TOLERANCE_SECONDS deve ser > 0")
        return errors


def _load_from_env() -> WebhookSecuritySettings:
    """Carrega WebhookSecuritySettings de variáveis de ambiente."""
    return WebhookSecuritySettings(
        sms_auth_token=get_sms_settings().auth_token,
        meta_app_secret=get_whatsapp_settings().webhook_secret,
        channel_token=get_email_settings().channel_token,
        slack_signing_secret=os.getenv("SLACK_SIGNING_SECRET", ""),
        generic_secret=os.getenv("WEBHOOK_GENERIC_SECRET", ""),
        generic_algorithm=os.getenv("WEBHOOK_GENERIC_ALGORITHM", "sha256").lower(),
        generic_encoding=os.getenv("WEBHOOK_GENERIC_ENCODING", "hex").lower(),
        tolerance_seconds=int(os.getenv("WEBHOOK_TOLERANCE_SECONDS", "300")),
    )


@lru_cache(maxsize=1)
def get_webhook_security_settings() -> WebhookSecuritySettings:
    """Retorna instância cacheada de WebhookSecuritySettings."""
    return _load_from_env()
