"""Rastreamento de estágios e latências de uma execução do pipeline."""

from __future__ import annotations

import time
from datetime import UTC, datetime

from app.observability import record_stage_latency
from app.protocols.models import ProcessingMetrics


class StageTracker:
    """Acumula estágios concluídos/falhos e emite latência por estágio."""

    def __init__(self, provider_type: str | None = None) -> None:
        self._provider_type = provider_type
        self._started_at = datetime.now(UTC)
        self._origin = time.perf_counter()
        self._completed: list[str] = []
        self._failed: list[str] = []
        self._current: str | None = None
        self._stage_origin = self._origin

    @property
    def current_stage(self) -> str | None:
        return self._current

    @property
    def stages_completed(self) -> tuple[str, ...]:
        return tuple(self._completed)

    @property
    def stages_failed(self) -> tuple[str, ...]:
        return tuple(self._failed)

    def start(self, stage: str) -> None:
        self._current = stage
        self._stage_origin = time.perf_counter()

    def stage_elapsed_ms(self) -> float:
        return (time.perf_counter() - self._stage_origin) * 1000

    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self._origin) * 1000

    def complete(self) -> None:
        self._close(self._completed)

    def fail(self) -> None:
        self._close(self._failed)

    def metrics(self, attempts: int = 1) -> ProcessingMetrics:
        return ProcessingMetrics(
            stages_completed=tuple(self._completed),
            stages_failed=tuple(self._failed),
            started_at=self._started_at,
            finished_at=datetime.now(UTC),
            duration_ms=self.elapsed_ms(),
            attempts=attempts,
        )

    def _close(self, bucket: list[str]) -> None:
        if self._current is None:
            return
        record_stage_latency(self._current, self.stage_elapsed_ms(), self._provider_type)
        bucket.append(self._current)
        self._current = None
