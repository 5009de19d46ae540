"""Settings específicas de SMS.

Configurações do canal SMS via gateway (Twilio).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


@dataclass(frozen=True)
class SmsSettings:
    """Configurações do canal SMS.

    Attributes:
        account_sid: Account SID da conta no gateway
        auth_token: Auth Token usado na assinatura HMAC-SHA1 dos webhooks
        webhook_url: URL pública exata configurada no gateway (entra na assinatura)
        business_numbers: Números do negócio; mensagens originadas deles são outbound
    """

    account_sid: str = ""
    auth_token: str = ""
    webhook_url: str = ""
    business_numbers: tuple[str, ...] = ()

    def validate(self) -> list[str]:
        """Valida configurações mínimas de SMS."""
        errors: list[str] = []
        if not self.auth_token:
            errors.append("SMS_AUTH_TOKEN não configurado")
        if not self.webhook_url:
            errors.append("SMS_WEBHOOK_URL não configurado")
        return errors


def _split_csv(value: str) -> tuple[str, ...]:
    return tuple(item.strip() for item in value.split(",") if item.strip())


def _load_from_env() -> SmsSettings:
    """Carrega SmsSettings de variáveis de ambiente."""
    return SmsSettings(
        account_sid=os.getenv("SMS_ACCOUNT_SID", ""),
        auth_token=os.getenv("SMS_AUTH_TOKEN", ""),
        webhook_url=os.getenv("SMS_WEBHOOK_URL", ""),
        business_numbers=_split_csv(os.getenv("SMS_BUSINESS_NUMBERS", "")),
    )


@lru_cache(maxsize=1)
def get_sms_settings() -> SmsSettings:
    """Retorna instância cacheada de SmsSettings."""
    return _load_from_env()
