"""Agregador de settings do conecta-inbox.

Re-exporta todas as settings e funções de cada módulo.
Organização por domínio para isolamento de mudanças.
"""

from __future__ import annotations

# Base settings
from config.settings.base import (
    BaseSettings,
    Environment,
    IdempotencyBackend,
    IdempotencySettings,
    get_base_settings,
    get_idempotency_settings,
)

# Channel-specific settings
from config.settings.email import EmailSettings, get_email_settings

# Pipeline policy
from config.settings.ingestion import IngestionSettings, get_ingestion_settings
from config.settings.sms import SmsSettings, get_sms_settings
from config.settings.webhooks import (
    WebhookSecuritySettings,
    get_webhook_security_settings,
)
from config.settings.whatsapp import (
    GRAPH_API_BASE_URL,
    GRAPH_API_VERSION,
    WhatsAppSettings,
    get_whatsapp_settings,
)

__all__ = [
    # Constants
    "GRAPH_API_BASE_URL",
    "GRAPH_API_VERSION",
    # Base
    "BaseSettings",
    # Channels
    "EmailSettings",
    "Environment",
    "IdempotencyBackend",
    "IdempotencySettings",
    # Pipeline
    "IngestionSettings",
    "SmsSettings",
    "WebhookSecuritySettings",
    "WhatsAppSettings",
    "get_base_settings",
    "get_email_settings",
    "get_idempotency_settings",
    "get_ingestion_settings",
    "get_sms_settings",
    "get_webhook_security_settings",
    "get_whatsapp_settings",
]
