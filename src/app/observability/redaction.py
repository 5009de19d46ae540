"""Mascaramento de identificadores para logs.

Telefones, emails e handles nunca são logados em claro; usar
mask_contact_value antes de incluir um valor de contato em `extra`.
"""

from __future__ import annotations

import hashlib


def mask_key(key: str, visible: int = 8) -> str:
    """Trunca chaves opacas (hashes) para log."""
    return key[:visible] + "..." if len(key) > visible else key


def mask_contact_value(value: str) -> str:
    """Mascara um valor de contato preservando apenas o formato.

    Exemplos:
        "+12345678901" -> "+1*******901"
        "sarah.johnson@example.com" -> "s***@example.com"
        "acme_support" -> "a***"
    """
    if not value:
        return value
    if "@" in value and not value.startswith("@"):
        local, _, domain = value.partition("@")
        return f"{local[:1]}***@{domain}"
    if value.startswith("+") and len(value) > 6:
        return f"{value[:2]}{'*' * (len(value) - 5)}{value[-3:]}"
    return f"{value[:1]}***"


def contact_digest(value: str) -> str:
    """Hash curto e estável de um contato, para correlacionar logs."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()[:12]
