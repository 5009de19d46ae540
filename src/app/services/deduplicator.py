"""Detecção de mensagens duplicadas.

Três sinais independentes, avaliados em ordem de custo crescente; o
primeiro positivo vence:

1. provider_id: mesmo (provider_id, provider_message_id) já persistido
2. content_hash: mesmo message_hash e mesmo fingerprint de conteúdo (anexos
   incluídos) do mesmo par dentro da janela
3. similar_content: corpo similar (>= limiar) do mesmo par dentro da janela

A comparação é sempre restrita ao mesmo canal e ao mesmo par
remetente/destinatário. O serviço é somente-leitura.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING

from app.constants.ingestion import DuplicateType
from app.domain.fingerprint import compute_content_fingerprint
from app.domain.similarity import text_similarity
from app.observability import mask_key, record_duplicate_detected
from app.protocols.models import DuplicateCheckResult

if TYPE_CHECKING:
    from collections.abc import Sequence

    from app.protocols.models import NormalizedMessage, StoredMessage
    from app.protocols.persistence import IngestionRepositoryProtocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DeduplicationOptions:
    """Opções de verificação de duplicidade."""

    check_provider_duplicates: bool = True
    check_content_duplicates: bool = True
    time_window_minutes: int = 60
    similarity_threshold: float = 0.85


class MessageDeduplicator:
    """Serviço sem estado de detecção de duplicatas.

    Args:
        repository: Colaborador de persistência (somente leituras)
        default_options: Opções usadas quando o chamador não informa
    """

    def __init__(
        self,
        repository: IngestionRepositoryProtocol,
        default_options: DeduplicationOptions | None = None,
    ) -> None:
        self._repository = repository
        self._default_options = default_options or DeduplicationOptions()

    async def check_for_duplicate(
        self,
        message: NormalizedMessage,
        options: DeduplicationOptions | None = None,
    ) -> DuplicateCheckResult:
        """Compõe os três sinais; o primeiro positivo vence."""
        opts = options or self._default_options

        if opts.check_provider_duplicates:
            result = await self.check_provider_id_duplicate(message)
            if result.is_duplicate:
                return self._report(message, result)

        if not opts.check_content_duplicates:
            return DuplicateCheckResult.not_duplicate()

        recent = await self._recent_pair_messages(message, opts.time_window_minutes)

        result = self._match_content_hash(message, recent)
        if result.is_duplicate:
            return self._report(message, result)

        result = self._match_similar_content(message, recent, opts.similarity_threshold)
        if result.is_duplicate:
            return self._report(message, result)

        return DuplicateCheckResult.not_duplicate()

    async def ensure_idempotency(self, message: NormalizedMessage) -> DuplicateCheckResult:
        """Verificação estreita usada imediatamente antes da escrita."""
        return await self.check_provider_id_duplicate(message)

    async def check_provider_id_duplicate(
        self,
        message: NormalizedMessage,
    ) -> DuplicateCheckResult:
        existing = await self._repository.find_message_by_provider_id(
            message.provider_id,
            message.provider_message_id,
        )
        if existing is None:
            return DuplicateCheckResult.not_duplicate()
        return DuplicateCheckResult(
            is_duplicate=True,
            duplicate_type=DuplicateType.PROVIDER_ID,
            confidence=1.0,
            existing_message_id=existing.id,
        )

    async def check_content_hash_duplicate(
        self,
        message: NormalizedMessage,
        time_window_minutes: int = 60,
    ) -> DuplicateCheckResult:
        recent = await self._recent_pair_messages(message, time_window_minutes)
        return self._match_content_hash(message, recent)

    async def check_similar_content_duplicate(
        self,
        message: NormalizedMessage,
        time_window_minutes: int = 60,
        similarity_threshold: float = 0.85,
    ) -> DuplicateCheckResult:
        recent = await self._recent_pair_messages(message, time_window_minutes)
        return self._match_similar_content(message, recent, similarity_threshold)

    # ──────────────────────────────────────────────────────────────
    # Internos
    # ──────────────────────────────────────────────────────────────

    async def _recent_pair_messages(
        self,
        message: NormalizedMessage,
        time_window_minutes: int,
    ) -> list[StoredMessage]:
        """Mensagens do mesmo par/canal dentro da janela em torno do timestamp."""
        window = timedelta(minutes=time_window_minutes)
        candidates: Sequence[StoredMessage] = await self._repository.find_messages_by_pair(
            str(message.channel),
            message.from_contact.normalized_value,
            message.to_contact.normalized_value,
            message.timestamp - window,
        )
        return [
            stored
            for stored in candidates
            if stored.channel == message.channel
            and stored.from_value == message.from_contact.normalized_value
            and stored.to_value == message.to_contact.normalized_value
            and abs(stored.timestamp - message.timestamp) <= window
        ]

    @staticmethod
    def _match_content_hash(
        message: NormalizedMessage,
        recent: Sequence[StoredMessage],
    ) -> DuplicateCheckResult:
        # message_hash ignora anexos; o fingerprint separa mídias distintas sem legenda
        fingerprint = compute_content_fingerprint(message)
        for stored in recent:
            if (
                stored.message_hash == message.message_hash
                and stored.content_fingerprint == fingerprint
            ):
                return DuplicateCheckResult(
                    is_duplicate=True,
                    duplicate_type=DuplicateType.CONTENT_HASH,
                    confidence=1.0,
                    existing_message_id=stored.id,
                )
        return DuplicateCheckResult.not_duplicate()

    @staticmethod
    def _match_similar_content(
        message: NormalizedMessage,
        recent: Sequence[StoredMessage],
        threshold: float,
    ) -> DuplicateCheckResult:
        # mídia só é duplicata pelo fingerprint exato; legenda igual não basta
        if not message.body or message.attachments:
            return DuplicateCheckResult.not_duplicate()

        best: tuple[float, StoredMessage] | None = None
        for stored in recent:
            if stored.content_type != message.content_type:
                continue
            score = text_similarity(message.body, stored.body)
            if score >= threshold and (best is None or score > best[0]):
                best = (score, stored)

        if best is None:
            return DuplicateCheckResult.not_duplicate()
        score, stored = best
        return DuplicateCheckResult(
            is_duplicate=True,
            duplicate_type=DuplicateType.SIMILAR_CONTENT,
            confidence=score,
            existing_message_id=stored.id,
        )

    @staticmethod
    def _report(message: NormalizedMessage, result: DuplicateCheckResult) -> DuplicateCheckResult:
        logger.debug(
            "dedupe_duplicate_detected",
            extra={
                "duplicate_type": str(result.duplicate_type),
                "confidence": result.confidence,
                "message_hash": mask_key(message.message_hash),
            },
        )
        record_duplicate_detected(str(result.duplicate_type), result.confidence)
        return result
