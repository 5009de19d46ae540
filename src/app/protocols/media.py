"""Protocolo de resolução de URLs de mídia."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from .models import Attachment, NormalizedMessage


class MediaResolverProtocol(Protocol):
    """Resolve a URL de um anexo pendente.

    Retorna None quando o canal não é suportado pelo resolver.
    Falhas de rede devem ser levantadas como utils.errors.MediaFetchError.
    """

    async def resolve(
        self,
        attachment: Attachment,
        message: NormalizedMessage,
    ) -> str | None: ...
