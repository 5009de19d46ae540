"""Settings específicas de Email.

Configurações do canal Email via notificações push do Gmail.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


@dataclass(frozen=True)
class EmailSettings:
    """Configurações do canal Email.

    Attributes:
        channel_token: Token de verificação do canal de notificação
            (comparado com o header X-Goog-Channel-Token)
        business_domains: Domínios do negócio; remetentes nesses domínios
            geram mensagens outbound
    """

    channel_token: str = ""
    business_domains: tuple[str, ...] = ()

    def validate(self) -> list[str]:
        """Valida configurações mínimas de Email."""
        errors: list[str] = []
        if not self.channel_token:
            errors.append("EMAIL_CHANNEL_TOKEN não configurado")
        return errors


def _load_from_env() -> EmailSettings:
    """Carrega EmailSettings de variáveis de ambiente."""
    domains = os.getenv("EMAIL_BUSINESS_DOMAINS", "")
    return EmailSettings(
        channel_token=os.getenv("EMAIL_CHANNEL_TOKEN", ""),
        business_domains=tuple(
            domain.strip().lower() for domain in domains.split(",") if domain.strip()
        ),
    )


@lru_cache(maxsize=1)
def get_email_settings() -> EmailSettings:
    """Retorna instância cacheada de EmailSettings."""
    return _load_from_env()
