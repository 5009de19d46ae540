"""Fixtures do pipeline de ingestão."""

from __future__ import annotations

import pytest

from api.normalizers import build_normalizer_table
from app.infra.stores import MemoryIdempotencyStore, MemoryIngestionRepository
from app.services.idempotency_guard import IdempotencyGuard
from app.use_cases.ingestion import IngestionPipeline
from config.settings.ingestion import IngestionSettings
from tests.fakes.ingestion import BUSINESS_PHONE


@pytest.fixture
def repo() -> MemoryIngestionRepository:
    return MemoryIngestionRepository()


@pytest.fixture
def guard() -> IdempotencyGuard:
    return IdempotencyGuard(MemoryIdempotencyStore())


@pytest.fixture
def make_pipeline(repo, guard):
    """Fábrica de pipeline com colaboradores em memória (sobrescrevíveis)."""

    def _factory(**overrides) -> IngestionPipeline:
        kwargs = {
            "repository": repo,
            "normalizers": build_normalizer_table(business_numbers=(BUSINESS_PHONE,)),
            "idempotency_guard": guard,
            "settings": IngestionSettings(),
        }
        kwargs.update(overrides)
        return IngestionPipeline(**kwargs)

    return _factory
