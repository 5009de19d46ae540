"""Use case: ingestão de uma mensagem de provedor até a persistência.

Estágios, em ordem:
validation → normalization → media_resolution → idempotency_check →
duplicate_check → identity_resolution → threading → persistence →
conversation_update.

Apenas provedor desconhecido, payload inválido e falha de persistência
(escrita ou leitura do dedupe; identidade, quando configurado) encerram
a mensagem como FAILED.
Os demais estágios degradam: a falha vai para stages_failed e o
processamento continua. process_message nunca levanta exceção.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from app.constants.ingestion import (
    DuplicateType,
    IngestionErrorCode,
    IngestionStatus,
    PipelineStage,
)
from app.observability import correlation_scope, message_correlation_id, record_ingestion_outcome
from app.protocols.models import IngestionResult, MessageRecord
from app.protocols.normalizer import NormalizationError
from app.services.conversation_grouper import ConversationGrouper
from app.services.deduplicator import MessageDeduplicator
from app.services.identity_resolver import IdentityResolver
from app.use_cases.ingestion._pipeline_stages import PipelineStagesMixin
from app.use_cases.ingestion._results import duplicate_result, failed_result
from app.use_cases.ingestion._stage_tracker import StageTracker
from app.use_cases.ingestion.options import (
    PipelineOptions,
    deduplication_options_from_settings,
    identity_options_from_settings,
    threading_options_from_settings,
)
from config.logging import log_stage_failure
from config.settings.ingestion import get_ingestion_settings
from utils.errors import InfrastructureError

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from app.protocols.media import MediaResolverProtocol
    from app.protocols.models import (
        IdentityResolution,
        NormalizedMessage,
        RawProviderMessage,
        ThreadingResult,
    )
    from app.protocols.normalizer import ProviderNormalizerProtocol
    from app.protocols.persistence import IngestionRepositoryProtocol
    from app.services.idempotency_guard import IdempotencyGuard
    from config.settings.ingestion import IngestionSettings

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _RunState:
    """Estado mutável de uma execução (reserva de idempotência ativa)."""

    message: NormalizedMessage | None = None
    reserved_key: str | None = None


class IngestionPipeline(PipelineStagesMixin):
    """Orquestra normalização, deduplicação, identidade, threading e escrita.

    Dependências são injetadas; serviços omitidos são construídos sobre
    o mesmo repositório com opções derivadas de IngestionSettings.

    Args:
        repository: Colaborador de persistência
        normalizers: provider_type -> normalizer
        idempotency_guard: Guarda contra entregas concorrentes
        deduplicator: MessageDeduplicator (opcional)
        identity_resolver: IdentityResolver (opcional)
        conversation_grouper: ConversationGrouper (opcional)
        media_resolver: Resolve URLs de anexos (None desliga o estágio)
        settings: Política de timeouts/retry (padrão: env)
    """

    def __init__(
        self,
        *,
        repository: IngestionRepositoryProtocol,
        normalizers: Mapping[str, ProviderNormalizerProtocol],
        idempotency_guard: IdempotencyGuard,
        deduplicator: MessageDeduplicator | None = None,
        identity_resolver: IdentityResolver | None = None,
        conversation_grouper: ConversationGrouper | None = None,
        media_resolver: MediaResolverProtocol | None = None,
        settings: IngestionSettings | None = None,
    ) -> None:
        self._settings = settings or get_ingestion_settings()
        self._repository = repository
        self._normalizers = {key.lower(): value for key, value in normalizers.items()}
        self._guard = idempotency_guard
        self._deduplicator = deduplicator or MessageDeduplicator(
            repository, deduplication_options_from_settings(self._settings)
        )
        self._identity_resolver = identity_resolver or IdentityResolver(
            repository, identity_options_from_settings(self._settings)
        )
        self._conversation_grouper = conversation_grouper or ConversationGrouper(
            repository, threading_options_from_settings(self._settings)
        )
        self._media_resolver = media_resolver

    @property
    def supported_provider_types(self) -> tuple[str, ...]:
        return tuple(sorted(self._normalizers))

    # ──────────────────────────────────────────────────────────────
    # API pública
    # ──────────────────────────────────────────────────────────────

    async def process_message(
        self,
        raw: RawProviderMessage,
        options: PipelineOptions | None = None,
    ) -> IngestionResult:
        """Processa uma mensagem bruta até um desfecho terminal."""
        opts = options or PipelineOptions()
        tracker = StageTracker(raw.provider_type)
        state = _RunState()

        with correlation_scope(message_correlation_id(raw.provider_id, raw.provider_message_id)):
            logger.info(
                "ingestion_started",
                extra={"provider_type": raw.provider_type, "provider_id": raw.provider_id},
            )
            try:
                result = await self._run(raw, opts, tracker, state)
            except Exception as exc:
                stage = tracker.current_stage
                tracker.fail()
                logger.exception(
                    "ingestion_unexpected_error",
                    extra={"stage": stage, "error_type": type(exc).__name__},
                )
                await self._release_reservation(state)
                result = failed_result(
                    IngestionErrorCode.UNKNOWN_ERROR,
                    str(exc) or type(exc).__name__,
                    tracker.metrics(),
                    stage=stage,
                    normalized_message=state.message,
                    details={"error_type": type(exc).__name__},
                )

            record_ingestion_outcome(
                str(result.status),
                raw.provider_type,
                result.processing_metrics.duration_ms,
                str(result.error.code) if result.error else None,
            )
            logger.info(
                "ingestion_finished",
                extra={
                    "status": str(result.status),
                    "message_id": result.message_id,
                    "stages_completed": list(result.processing_metrics.stages_completed),
                    "stages_failed": list(result.processing_metrics.stages_failed),
                },
            )
            return result

    async def process_message_batch(
        self,
        raws: Iterable[RawProviderMessage],
        options: PipelineOptions | None = None,
        *,
        max_concurrency: int = 1,
    ) -> list[IngestionResult]:
        """Processa mensagens de forma independente.

        Um resultado por entrada, na mesma ordem; a falha de uma mensagem
        não afeta as demais.
        """
        items = list(raws)
        semaphore = asyncio.Semaphore(max(1, max_concurrency))

        async def _process(raw: RawProviderMessage) -> IngestionResult:
            async with semaphore:
                return await self.process_message(raw, options)

        outcomes = await asyncio.gather(
            *(_process(raw) for raw in items),
            return_exceptions=True,
        )

        results: list[IngestionResult] = []
        for outcome in outcomes:
            if isinstance(outcome, IngestionResult):
                results.append(outcome)
                continue
            logger.error(
                "ingestion_batch_item_crashed",
                extra={"error_type": type(outcome).__name__},
            )
            results.append(
                failed_result(
                    IngestionErrorCode.UNKNOWN_ERROR,
                    str(outcome) or type(outcome).__name__,
                    StageTracker().metrics(),
                )
            )
        return results

    async def retry_failed_message(
        self,
        raw: RawProviderMessage,
        options: PipelineOptions | None = None,
        *,
        max_retries: int | None = None,
        base_delay_ms: int | None = None,
        max_delay_ms: int | None = None,
    ) -> IngestionResult:
        """Reprocessa com backoff exponencial enquanto a falha for transitória.

        Cada tentativa reutiliza a mesma chave de idempotência; um sucesso
        anterior faz as seguintes terminarem como DUPLICATE.

        Args:
            max_retries: Tentativas extras após a primeira
            base_delay_ms: Espera antes da 1ª retentativa
            max_delay_ms: Teto da espera entre tentativas
        """
        retries = self._settings.max_retries if max_retries is None else max_retries
        base = self._settings.retry_base_delay_ms if base_delay_ms is None else base_delay_ms
        ceiling = self._settings.retry_max_delay_ms if max_delay_ms is None else max_delay_ms

        attempt = 0
        while True:
            attempt += 1
            result = await self.process_message(raw, options)
            error = result.error
            retryable = (
                result.status == IngestionStatus.FAILED and error is not None and error.retryable
            )
            if not retryable or attempt > retries:
                return replace(
                    result,
                    processing_metrics=replace(result.processing_metrics, attempts=attempt),
                )

            delay_ms = min(base * 2 ** (attempt - 1), ceiling)
            logger.info(
                "ingestion_retry_scheduled",
                extra={
                    "attempt": attempt,
                    "delay_ms": delay_ms,
                    "error_code": str(error.code) if error else None,
                },
            )
            await asyncio.sleep(delay_ms / 1000)

    # ──────────────────────────────────────────────────────────────
    # Execução
    # ──────────────────────────────────────────────────────────────

    async def _run(
        self,
        raw: RawProviderMessage,
        opts: PipelineOptions,
        tracker: StageTracker,
        state: _RunState,
    ) -> IngestionResult:
        tracker.start(PipelineStage.VALIDATION)
        normalizer = self._normalizers.get(raw.provider_type.lower())
        if normalizer is None:
            tracker.fail()
            log_stage_failure(logger, PipelineStage.VALIDATION, "provider_not_supported", fatal=True)
            return failed_result(
                IngestionErrorCode.PROVIDER_NOT_SUPPORTED,
                f"Unsupported provider type: {raw.provider_type}",
                tracker.metrics(),
                stage=PipelineStage.VALIDATION,
                details={"provider_type": raw.provider_type},
            )
        tracker.complete()

        tracker.start(PipelineStage.NORMALIZATION)
        try:
            message = normalizer.normalize(raw)
        except NormalizationError as exc:
            log_stage_failure(
                logger,
                PipelineStage.NORMALIZATION,
                "invalid_payload",
                error_type=type(exc).__name__,
                elapsed_ms=tracker.stage_elapsed_ms(),
                fatal=True,
            )
            tracker.fail()
            return failed_result(
                IngestionErrorCode.INVALID_PAYLOAD,
                str(exc),
                tracker.metrics(),
                stage=PipelineStage.NORMALIZATION,
            )
        tracker.complete()
        state.message = message

        if not opts.skip_media_resolution:
            message = await self._resolve_media(message, opts, tracker)
            state.message = message

        duplicate = await self._check_idempotency(message, tracker, state)
        if duplicate is not None:
            return duplicate

        if not opts.skip_duplicate_check:
            duplicate = await self._check_duplicates(message, opts, tracker, state)
            if duplicate is not None:
                return duplicate

        identity = None
        if not opts.skip_identity_resolution:
            identity, identity_error = await self._resolve_identity(message, opts, tracker)
            if identity_error is not None and not opts.continue_on_identity_failure:
                await self._release_reservation(state)
                return failed_result(
                    IngestionErrorCode.IDENTITY_RESOLUTION_FAILURE,
                    str(identity_error) or type(identity_error).__name__,
                    tracker.metrics(),
                    stage=PipelineStage.IDENTITY_RESOLUTION,
                    normalized_message=message,
                )
        customer_id = identity.customer_id if identity else None

        threading = None
        if not opts.skip_threading:
            threading = await self._group_conversation(message, customer_id, opts, tracker)

        return await self._persist(message, customer_id, identity, threading, opts, tracker, state)

    async def _check_idempotency(
        self,
        message: NormalizedMessage,
        tracker: StageTracker,
        state: _RunState,
    ) -> IngestionResult | None:
        tracker.start(PipelineStage.IDEMPOTENCY_CHECK)
        # received_at muda a cada reentrega; sem horário do provedor a chave usa só os IDs
        timestamp = message.timestamp if message.has_provider_timestamp else None
        key = self._guard.deterministic_key(
            message.provider_id, message.provider_message_id, timestamp
        )
        try:
            existing_id = await self._guard.check_idempotency(key)
            acquired = existing_id is None and await self._guard.try_acquire(key)
        except (TimeoutError, InfrastructureError) as exc:
            # Segue sem reserva: dedupe por provider_id e unicidade do repositório cobrem
            log_stage_failure(
                logger,
                PipelineStage.IDEMPOTENCY_CHECK,
                "timeout" if isinstance(exc, TimeoutError) else "store_unavailable",
                error_type=type(exc).__name__,
                elapsed_ms=tracker.stage_elapsed_ms(),
            )
            tracker.fail()
            return None

        if acquired:
            state.reserved_key = key
            tracker.complete()
            return None

        tracker.complete()
        return duplicate_result(
            tracker.metrics(),
            normalized_message=message,
            existing_message_id=existing_id,
            duplicate_type=DuplicateType.PROVIDER_ID,
            stage=PipelineStage.IDEMPOTENCY_CHECK,
            in_flight=existing_id is None,
        )

    async def _check_duplicates(
        self,
        message: NormalizedMessage,
        opts: PipelineOptions,
        tracker: StageTracker,
        state: _RunState,
    ) -> IngestionResult | None:
        tracker.start(PipelineStage.DUPLICATE_CHECK)
        try:
            check = await asyncio.wait_for(
                self._deduplicator.check_for_duplicate(message, opts.deduplication),
                timeout=self._persistence_timeout(opts),
            )
        except (TimeoutError, InfrastructureError) as exc:
            reason = "timeout" if isinstance(exc, TimeoutError) else "error"
            log_stage_failure(
                logger,
                PipelineStage.DUPLICATE_CHECK,
                reason,
                error_type=type(exc).__name__,
                elapsed_ms=tracker.stage_elapsed_ms(),
                fatal=True,
            )
            tracker.fail()
            await self._release_reservation(state)
            return failed_result(
                IngestionErrorCode.PERSISTENCE_FAILURE,
                f"Failed to read recent messages: {exc or reason}",
                tracker.metrics(),
                stage=PipelineStage.DUPLICATE_CHECK,
                normalized_message=message,
                details={"reason": reason},
            )
        tracker.complete()
        if not check.is_duplicate:
            return None

        await self._finalize_reservation(state, check.existing_message_id)
        return duplicate_result(
            tracker.metrics(),
            normalized_message=message,
            existing_message_id=check.existing_message_id,
            duplicate_type=check.duplicate_type,
            confidence=check.confidence,
            stage=PipelineStage.DUPLICATE_CHECK,
        )

    async def _persist(
        self,
        message: NormalizedMessage,
        customer_id: str | None,
        identity: IdentityResolution | None,
        threading: ThreadingResult | None,
        opts: PipelineOptions,
        tracker: StageTracker,
        state: _RunState,
    ) -> IngestionResult:
        tracker.start(PipelineStage.PERSISTENCE)
        record = MessageRecord(
            message=message,
            customer_id=customer_id,
            conversation_id=threading.conversation_id if threading else None,
        )
        try:
            message_id, created = await asyncio.wait_for(
                self._write_message(record),
                timeout=self._persistence_timeout(opts),
            )
        except (TimeoutError, InfrastructureError) as exc:
            reason = "timeout" if isinstance(exc, TimeoutError) else "error"
            log_stage_failure(
                logger,
                PipelineStage.PERSISTENCE,
                reason,
                error_type=type(exc).__name__,
                elapsed_ms=tracker.stage_elapsed_ms(),
                fatal=True,
            )
            tracker.fail()
            await self._release_reservation(state)
            return failed_result(
                IngestionErrorCode.PERSISTENCE_FAILURE,
                f"Failed to persist message: {exc or reason}",
                tracker.metrics(),
                stage=PipelineStage.PERSISTENCE,
                normalized_message=message,
                details={"reason": reason},
            )
        tracker.complete()
        await self._finalize_reservation(state, message_id)

        if not created:
            return duplicate_result(
                tracker.metrics(),
                normalized_message=message,
                existing_message_id=message_id,
                duplicate_type=DuplicateType.PROVIDER_ID,
                stage=PipelineStage.PERSISTENCE,
            )

        await self._update_conversation(message, threading, opts, tracker)
        return IngestionResult(
            status=IngestionStatus.SUCCESS,
            processing_metrics=tracker.metrics(),
            message_id=message_id,
            normalized_message=message,
            identity_resolution=identity,
            threading_context=threading,
        )

    async def _write_message(self, record: MessageRecord) -> tuple[str | None, bool]:
        """Última checagem por provider_id e escrita.

        Returns:
            (message_id, created); created=False indica duplicata.
        """
        check = await self._deduplicator.ensure_idempotency(record.message)
        if check.is_duplicate:
            return check.existing_message_id, False
        stored, created = await self._repository.create_message(record)
        return stored.id, created

    # ──────────────────────────────────────────────────────────────
    # Reserva de idempotência
    # ──────────────────────────────────────────────────────────────

    async def _finalize_reservation(self, state: _RunState, message_id: str | None) -> None:
        """Converte a reserva em chave processada (ou libera sem message_id)."""
        key = state.reserved_key
        if key is None:
            return
        if message_id is None:
            await self._release_reservation(state)
            return
        state.reserved_key = None
        try:
            await self._guard.mark_as_processed(key, message_id)
        except InfrastructureError as exc:
            # Reserva expira pelo TTL de in-flight; dedupe por provider_id cobre o resto
            logger.warning(
                "idempotency_mark_failed",
                extra={"error_type": type(exc).__name__},
            )

    async def _release_reservation(self, state: _RunState) -> None:
        key, state.reserved_key = state.reserved_key, None
        if key is None:
            return
        try:
            await self._guard.release(key)
        except InfrastructureError as exc:
            logger.warning(
                "idempotency_release_failed",
                extra={"error_type": type(exc).__name__},
            )
