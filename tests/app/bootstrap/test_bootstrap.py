"""Testes do composition root."""

from __future__ import annotations

import logging

import pytest

from app.bootstrap import validate_runtime_settings
from app.bootstrap.dependencies import create_ingestion_pipeline
from app.bootstrap.dependencies_stores import create_idempotency_store, create_media_resolver
from app.constants.ingestion import IngestionStatus
from app.infra.media import WhatsAppMediaResolver
from app.infra.stores import MemoryIdempotencyStore, MemoryIngestionRepository
from config.settings import (
    get_base_settings,
    get_email_settings,
    get_idempotency_settings,
    get_ingestion_settings,
    get_sms_settings,
    get_webhook_security_settings,
    get_whatsapp_settings,
)
from tests.fakes.ingestion import make_raw, twilio_body

_GETTERS = (
    get_base_settings,
    get_email_settings,
    get_idempotency_settings,
    get_ingestion_settings,
    get_sms_settings,
    get_webhook_security_settings,
    get_whatsapp_settings,
)


@pytest.fixture(autouse=True)
def _fresh_settings():
    for getter in _GETTERS:
        getter.cache_clear()
    yield
    for getter in _GETTERS:
        getter.cache_clear()


@pytest.fixture
def configured_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SMS_AUTH_TOKEN", "token")
    monkeypatch.setenv("SMS_WEBHOOK_URL", "https://inbox.example.com/sms")
    monkeypatch.setenv("EMAIL_CHANNEL_TOKEN", "channel-token")
    monkeypatch.setenv("WHATSAPP_WEBHOOK_SECRET", "app-secret")


class TestValidateRuntimeSettings:
    def test_ok_when_configured(self, configured_env: None, caplog) -> None:
        caplog.set_level(logging.INFO)
        validate_runtime_settings()
        assert any(r.getMessage() == "settings_validated" for r in caplog.records)

    def test_development_only_warns(self, monkeypatch: pytest.MonkeyPatch, caplog) -> None:
        monkeypatch.setenv("ENVIRONMENT", "development")
        validate_runtime_settings()
        assert any(r.getMessage() == "settings_validation_failed" for r in caplog.records)

    def test_production_fails_fast(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ENVIRONMENT", "production")
        with pytest.raises(RuntimeError, match="sms: SMS_AUTH_TOKEN"):
            validate_runtime_settings()


class TestStoreFactories:
    def test_memory_store_by_default(self) -> None:
        assert isinstance(create_idempotency_store(), MemoryIdempotencyStore)

    def test_media_resolver_needs_access_token(self, monkeypatch: pytest.MonkeyPatch) -> None:
        assert create_media_resolver() is None
        get_whatsapp_settings.cache_clear()
        monkeypatch.setenv("WHATSAPP_ACCESS_TOKEN", "abc")
        assert isinstance(create_media_resolver(), WhatsAppMediaResolver)


class TestCreateIngestionPipeline:
    def test_supports_every_provider(self) -> None:
        pipeline = create_ingestion_pipeline()
        assert pipeline.supported_provider_types == (
            "facebook",
            "gmail",
            "instagram",
            "twilio_sms",
            "whatsapp",
        )

    @pytest.mark.asyncio
    async def test_business_numbers_drive_direction(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Números do negócio vindos do env chegam ao normalizer SMS."""
        monkeypatch.setenv("SMS_BUSINESS_NUMBERS", "+12345678901")
        repo = MemoryIngestionRepository()
        pipeline = create_ingestion_pipeline(repo)

        result = await pipeline.process_message(make_raw(twilio_body()))

        assert result.status == IngestionStatus.SUCCESS
        assert str(result.normalized_message.direction) == "outbound"
        assert len(repo.messages) == 1
