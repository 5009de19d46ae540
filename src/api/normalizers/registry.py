"""Tabela de despacho provider_type -> normalizer.

A tabela usada pelo pipeline é montada no bootstrap via
build_normalizer_table (com settings de canal). O registro global serve
para lookups avulsos e para registrar normalizers extras.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from app.constants.ingestion import Channel
from app.domain.contacts import DEFAULT_COUNTRY_CODE

from .email import GmailNormalizer
from .messenger import MessengerNormalizer
from .sms import TwilioSmsNormalizer
from .whatsapp import WhatsAppNormalizer

if TYPE_CHECKING:
    from collections.abc import Iterable

    from app.protocols.normalizer import ProviderNormalizerProtocol


def build_normalizer_table(
    *,
    default_country_code: str = DEFAULT_COUNTRY_CODE,
    business_numbers: Iterable[str] = (),
    business_domains: Iterable[str] = (),
) -> dict[str, ProviderNormalizerProtocol]:
    """Monta a tabela padrão de normalizers.

    Args:
        default_country_code: Código de país para telefones de 10 dígitos
        business_numbers: Números SMS do negócio (direção outbound)
        business_domains: Domínios de email do negócio (direção outbound)
    """
    return {
        "twilio_sms": TwilioSmsNormalizer(
            default_country_code=default_country_code,
            business_numbers=tuple(business_numbers),
        ),
        "whatsapp": WhatsAppNormalizer(default_country_code=default_country_code),
        "gmail": GmailNormalizer(business_domains=tuple(business_domains)),
        "facebook": MessengerNormalizer(Channel.FACEBOOK),
        "instagram": MessengerNormalizer(Channel.INSTAGRAM),
    }


_registry: dict[str, ProviderNormalizerProtocol] = build_normalizer_table()


def get_normalizer(provider_type: str) -> ProviderNormalizerProtocol | None:
    """Normalizer registrado para o tipo, ou None se não suportado."""
    return _registry.get(provider_type.lower())


def register_normalizer(provider_type: str, normalizer: ProviderNormalizerProtocol) -> None:
    """Registra (ou substitui) o normalizer de um provider_type."""
    _registry[provider_type.lower()] = normalizer


def supported_provider_types() -> tuple[str, ...]:
    return tuple(sorted(_registry))
