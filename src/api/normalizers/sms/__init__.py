"""Normalizer SMS — webhook form-urlencoded do gateway (Twilio).

Suporta SMS e MMS (anexos MediaUrl{i}); status de entrega são tratados
como eco outbound.
"""

from .extractor import extract_media_attachments
from .normalizer import TwilioSmsNormalizer

__all__ = [
    "TwilioSmsNormalizer",
    "extract_media_attachments",
]
