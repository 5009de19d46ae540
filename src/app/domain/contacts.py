"""Normalização de identificadores de contato (telefone, email, handle).

Funções puras, sem IO. Valores normalizados são a chave de comparação
de identidades, dedupe e thread keys.
"""

from __future__ import annotations

import re
from email.utils import parseaddr

from app.constants.ingestion import ContactType
from app.protocols.models import Contact

DEFAULT_COUNTRY_CODE = "1"

_NON_DIGITS = re.compile(r"\D")
_NON_ALNUM = re.compile(r"[^0-9a-z]")


def normalize_phone(raw: str, default_country_code: str = DEFAULT_COUNTRY_CODE) -> str:
    """Normaliza telefone para E.164.

    O código de país padrão só é aplicado quando há exatamente 10 dígitos
    e o valor bruto não começa com "+".

    Exemplos:
        "(234) 567-8901" -> "+12345678901"
        "+1234567890" -> "+1234567890"
        "5511999999999" -> "+5511999999999"
    """
    stripped = raw.strip()
    digits = _NON_DIGITS.sub("", stripped)
    if not digits:
        return stripped
    if stripped.startswith("+"):
        return f"+{digits}"
    if len(digits) == 10:
        return f"+{default_country_code}{digits}"
    return f"+{digits}"


def parse_email_address(raw: str) -> tuple[str | None, str]:
    """Separa nome de exibição e endereço ("Name <addr>")."""
    display_name, address = parseaddr(raw)
    if not address:
        return None, raw.strip()
    return (display_name or None), address.strip()


def normalize_email(raw: str) -> str:
    _, address = parse_email_address(raw)
    return address.lower()


def normalize_social_handle(raw: str) -> str:
    return raw.strip().lstrip("@").lower()


def normalize_contact_value(
    contact_type: ContactType,
    raw: str,
    *,
    default_country_code: str = DEFAULT_COUNTRY_CODE,
) -> str:
    """Aplica a normalização correspondente ao tipo de contato."""
    if contact_type == ContactType.PHONE:
        return normalize_phone(raw, default_country_code)
    if contact_type == ContactType.EMAIL:
        return normalize_email(raw)
    return normalize_social_handle(raw)


def build_contact(
    raw: str,
    contact_type: ContactType,
    provider: str,
    *,
    default_country_code: str = DEFAULT_COUNTRY_CODE,
) -> Contact:
    """Cria Contact a partir do valor bruto recebido do provedor."""
    normalized = normalize_contact_value(
        contact_type, raw, default_country_code=default_country_code
    )
    return Contact(
        identifier=normalized,
        normalized_value=normalized,
        raw_value=raw,
        type=contact_type,
        provider=provider,
    )


def strip_formatting(value: str) -> str:
    """Remove tudo que não for letra ou dígito (comparação fuzzy)."""
    return _NON_ALNUM.sub("", value.lower())


def fuzzy_search_key(contact: Contact) -> str:
    """Chave de busca tolerante a formatação para matching fuzzy.

    Telefone: últimos 10 dígitos (ignora variação de código de país).
    Email: parte local sem pontuação.
    Social: handle sem pontuação.
    """
    if contact.type == ContactType.PHONE:
        digits = _NON_DIGITS.sub("", contact.raw_value) or _NON_DIGITS.sub(
            "", contact.normalized_value
        )
        return digits[-10:]
    if contact.type == ContactType.EMAIL:
        local_part = contact.normalized_value.split("@", 1)[0]
        return strip_formatting(local_part)
    return strip_formatting(contact.normalized_value)
