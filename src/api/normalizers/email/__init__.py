"""Normalizer Email (Gmail API) — extração e normalização de emails.

Responsabilidades:
- Ler headers, corpo (text/plain, text/html, snippet) e anexos
- Normalizar para modelo interno NormalizedMessage
"""

from .extractor import extract_attachments, extract_body, html_to_text
from .normalizer import GmailNormalizer

__all__ = [
    "GmailNormalizer",
    "extract_attachments",
    "extract_body",
    "html_to_text",
]
