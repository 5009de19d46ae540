"""Protocolos de normalização de payloads de provedores."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from .models import NormalizedMessage, RawProviderMessage


class NormalizationError(ValueError):
    """Payload sem os campos obrigatórios para normalização."""


class ProviderNormalizerProtocol(Protocol):
    """Contrato mínimo de um normalizer por provider_type.

    Deve levantar NormalizationError quando campos obrigatórios
    estiverem ausentes; campos opcionais nunca geram erro.
    """

    def normalize(self, raw: RawProviderMessage) -> NormalizedMessage: ...
