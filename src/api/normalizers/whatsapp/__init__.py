"""Normalizer WhatsApp — extração e normalização de mensagens.

Responsabilidades:
- Localizar a mensagem/status no envelope do webhook Cloud API
- Normalizar para modelo interno NormalizedMessage

Tipos suportados: text, image, video, audio, document, sticker,
location, contacts, interactive, button, reaction e status de entrega.
"""

from .extractor import SUPPORTED_MESSAGE_TYPES, extract_content, select_event
from .normalizer import WhatsAppNormalizer

__all__ = [
    "SUPPORTED_MESSAGE_TYPES",
    "WhatsAppNormalizer",
    "extract_content",
    "select_event",
]
