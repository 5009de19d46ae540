"""Estágios não fatais do pipeline (mídia, identidade, threading, atividade).

Cada método registra sucesso/falha no StageTracker e nunca interrompe a
mensagem: a decisão de abortar fica com IngestionPipeline.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from app.constants.ingestion import PipelineStage
from app.services.conversation_grouper import build_conversation_tags
from config.logging import log_stage_failure
from utils.errors import MediaFetchError

if TYPE_CHECKING:
    from app.protocols.media import MediaResolverProtocol
    from app.protocols.models import (
        Attachment,
        IdentityResolution,
        NormalizedMessage,
        ThreadingResult,
    )
    from app.services.conversation_grouper import ConversationGrouper
    from app.services.identity_resolver import IdentityResolver
    from app.use_cases.ingestion._stage_tracker import StageTracker
    from app.use_cases.ingestion.options import PipelineOptions
    from config.settings.ingestion import IngestionSettings

logger = logging.getLogger(__name__)


def _failure_reason(exc: BaseException) -> str:
    return "timeout" if isinstance(exc, TimeoutError) else "error"


class PipelineStagesMixin:
    """Estágios opcionais do IngestionPipeline."""

    _settings: IngestionSettings
    _media_resolver: MediaResolverProtocol | None
    _identity_resolver: IdentityResolver
    _conversation_grouper: ConversationGrouper

    def _persistence_timeout(self, opts: PipelineOptions) -> float:
        return opts.persistence_timeout_seconds or self._settings.persistence_timeout_seconds

    # ──────────────────────────────────────────────────────────────
    # Mídia
    # ──────────────────────────────────────────────────────────────

    async def _resolve_media(
        self,
        message: NormalizedMessage,
        opts: PipelineOptions,
        tracker: StageTracker,
    ) -> NormalizedMessage:
        """Resolve URLs pendentes; falhas mantêm o anexo com url vazia."""
        if self._media_resolver is None or not any(
            _is_pending(attachment) for attachment in message.attachments
        ):
            return message

        tracker.start(PipelineStage.MEDIA_RESOLUTION)
        timeout = opts.media_timeout_seconds or self._settings.media_timeout_seconds
        attachments: list[Attachment] = []
        failures = 0
        for attachment in message.attachments:
            if not _is_pending(attachment):
                attachments.append(attachment)
                continue
            try:
                url = await asyncio.wait_for(
                    self._media_resolver.resolve(attachment, message),
                    timeout=timeout,
                )
            except (TimeoutError, MediaFetchError) as exc:
                failures += 1
                log_stage_failure(
                    logger,
                    PipelineStage.MEDIA_RESOLUTION,
                    _failure_reason(exc),
                    error_type=type(exc).__name__,
                    elapsed_ms=tracker.stage_elapsed_ms(),
                )
                attachments.append(attachment)
                continue
            attachments.append(replace(attachment, url=url) if url else attachment)

        if failures:
            tracker.fail()
        else:
            tracker.complete()
        return replace(message, attachments=tuple(attachments))

    # ──────────────────────────────────────────────────────────────
    # Identidade
    # ──────────────────────────────────────────────────────────────

    async def _resolve_identity(
        self,
        message: NormalizedMessage,
        opts: PipelineOptions,
        tracker: StageTracker,
    ) -> tuple[IdentityResolution | None, Exception | None]:
        """Resolve (e cria/vincula) o cliente da mensagem.

        Returns:
            (resolução, None) em sucesso; (None, exceção) em falha.
        """
        tracker.start(PipelineStage.IDENTITY_RESOLUTION)
        try:
            resolution = await asyncio.wait_for(
                self._resolve_and_link(message, opts),
                timeout=self._persistence_timeout(opts),
            )
        except Exception as exc:
            log_stage_failure(
                logger,
                PipelineStage.IDENTITY_RESOLUTION,
                _failure_reason(exc),
                error_type=type(exc).__name__,
                elapsed_ms=tracker.stage_elapsed_ms(),
                fatal=not opts.continue_on_identity_failure,
            )
            tracker.fail()
            return None, exc
        tracker.complete()
        return resolution, None

    async def _resolve_and_link(
        self,
        message: NormalizedMessage,
        opts: PipelineOptions,
    ) -> IdentityResolution:
        customer, _business = await self._identity_resolver.resolve_both_contacts(
            message.from_contact,
            message.to_contact,
            message.direction,
            opts.identity,
        )
        return await self._identity_resolver.create_or_link_identity(
            message.customer_contact, customer
        )

    # ──────────────────────────────────────────────────────────────
    # Conversas
    # ──────────────────────────────────────────────────────────────

    async def _group_conversation(
        self,
        message: NormalizedMessage,
        customer_id: str | None,
        opts: PipelineOptions,
        tracker: StageTracker,
    ) -> ThreadingResult | None:
        tracker.start(PipelineStage.THREADING)
        try:
            threading = await asyncio.wait_for(
                self._conversation_grouper.group_into_conversation(
                    message, customer_id, opts.threading
                ),
                timeout=self._persistence_timeout(opts),
            )
        except Exception as exc:
            log_stage_failure(
                logger,
                PipelineStage.THREADING,
                _failure_reason(exc),
                error_type=type(exc).__name__,
                elapsed_ms=tracker.stage_elapsed_ms(),
            )
            tracker.fail()
            return None
        tracker.complete()
        return threading

    async def _update_conversation(
        self,
        message: NormalizedMessage,
        threading: ThreadingResult | None,
        opts: PipelineOptions,
        tracker: StageTracker,
    ) -> None:
        if threading is None or threading.conversation_id is None:
            return
        tracker.start(PipelineStage.CONVERSATION_UPDATE)
        try:
            await asyncio.wait_for(
                self._conversation_grouper.update_conversation_activity(
                    threading.conversation_id,
                    message.timestamp,
                    build_conversation_tags(message),
                ),
                timeout=self._persistence_timeout(opts),
            )
        except Exception as exc:
            log_stage_failure(
                logger,
                PipelineStage.CONVERSATION_UPDATE,
                _failure_reason(exc),
                error_type=type(exc).__name__,
                elapsed_ms=tracker.stage_elapsed_ms(),
            )
            tracker.fail()
            return
        tracker.complete()


def _is_pending(attachment: Attachment) -> bool:
    return not attachment.is_resolved and bool(attachment.media_id)
