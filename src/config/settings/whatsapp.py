"""Settings específicas de WhatsApp.

Configurações do canal WhatsApp via Graph API.
Cada canal deve ter seu próprio arquivo de settings para isolamento.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

# Constantes do Graph API
GRAPH_API_VERSION: str = "v24.0"
GRAPH_API_BASE_URL: str = "https://graph.facebook.com"


@dataclass(frozen=True)
class WhatsAppSettings:
    """Configurações do canal WhatsApp.

    Attributes:
        verify_token: Token para verificação de webhook (hub.verify_token)
        webhook_secret: App secret para validação HMAC de payloads
        access_token: Token de acesso à Graph API (resolução de mídia)
        api_version: Versão da Graph API (ex: v24.0)
        api_base_url: URL base da Graph API
        request_timeout_seconds: Timeout para requisições HTTP
        max_retries: Máximo de tentativas em caso de erro
        backoff_base_seconds: Espera antes da 1ª retentativa (dobra a cada uma)
        backoff_max_seconds: Teto da espera entre tentativas
    """

    # Credenciais
    verify_token: str = ""
    webhook_secret: str = ""
    access_token: str = ""

    # API
    api_version: str = GRAPH_API_VERSION
    api_base_url: str = GRAPH_API_BASE_URL

    # Timeouts e retries
    request_timeout_seconds: float = 10.0
    max_retries: int = 2
    backoff_base_seconds: float = 0.5
    backoff_max_seconds: float = 8.0

    @property
    def api_endpoint(self) -> str:
        """URL base completa da API com versão."""
        return f"{self.api_base_url}/{self.api_version}"

    def get_media_lookup_endpoint(self, media_id: str) -> str:
        """Retorna URL de consulta de metadados de mídia.

        Returns:
            URL no formato: https://graph.facebook.com/v24.0/{media_id}
        """
        if not media_id:
            raise ValueError("media_id é obrigatório")
        return f"{self.api_endpoint}/{media_id}"

    def validate(self) -> list[str]:
        """Valida configurações mínimas de WhatsApp.

        Returns:
            Lista de erros de validação (vazia = tudo OK).
        """
        errors: list[str] = []

        if not self.webhook_secret:
            errors.append("WHATSAPP_WEBHOOK_SECRET não configurado")

        if self.request_timeout_seconds <= 0:
            errors.append("WHATSAPP_REQUEST_TIMEOUT_SECONDS deve ser > 0")

        if self.max_retries < 0:
            errors.append("WHATSAPP_MAX_RETRIES deve ser >= 0")

        if self.backoff_base_seconds < 0 or self.backoff_max_seconds < 0:
            errors.append("WHATSAPP_BACKOFF_*_SECONDS deve ser >= 0")

        return errors


def _load_from_env() -> WhatsAppSettings:
    """Carrega WhatsAppSettings a partir de variáveis de ambiente."""
    return WhatsAppSettings(
        verify_token=os.getenv("WHATSAPP_VERIFY_TOKEN", ""),
        webhook_secret=os.getenv("WHATSAPP_WEBHOOK_SECRET", ""),
        access_token=os.getenv("WHATSAPP_ACCESS_TOKEN", ""),
        api_version=os.getenv("WHATSAPP_API_VERSION", GRAPH_API_VERSION),
        api_base_url=os.getenv("WHATSAPP_API_BASE_URL", GRAPH_API_BASE_URL),
        request_timeout_seconds=float(
            os.getenv("WHATSAPP_REQUEST_TIMEOUT_SECONDS", "10")
        ),
        max_retries=int(os.getenv("WHATSAPP_MAX_RETRIES", "2")),
        backoff_base_seconds=float(os.getenv("WHATSAPP_BACKOFF_BASE_SECONDS", "0.5")),
        backoff_max_seconds=float(os.getenv("WHATSAPP_BACKOFF_MAX_SECONDS", "8")),
    )


@lru_cache(maxsize=1)
def get_whatsapp_settings() -> WhatsAppSettings:
    """Retorna instância cacheada de WhatsAppSettings.

    A cache garante singleton para múltiplas injeções.
    """
    return _load_from_env()
