"""Normalizers por provedor — payloads externos -> NormalizedMessage.

Estrutura:
- sms/: gateway SMS (Twilio), form-urlencoded
- whatsapp/: WhatsApp Cloud API
- email/: Gmail API
- messenger/: Facebook Messenger e Instagram

Cada provedor tem schema (pydantic), extractor e normalizer, mantendo SRP.
"""

from .registry import (
    build_normalizer_table,
    get_normalizer,
    register_normalizer,
    supported_provider_types,
)

__all__ = [
    "build_normalizer_table",
    "get_normalizer",
    "register_normalizer",
    "supported_provider_types",
]
