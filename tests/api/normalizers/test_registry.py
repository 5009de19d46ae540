"""Testes da tabela de normalizers."""

from __future__ import annotations

from api.normalizers import (
    build_normalizer_table,
    get_normalizer,
    register_normalizer,
    registry,
    supported_provider_types,
)
from api.normalizers.sms import TwilioSmsNormalizer


class TestRegistry:
    def test_default_table(self) -> None:
        assert sorted(build_normalizer_table()) == [
            "facebook",
            "gmail",
            "instagram",
            "twilio_sms",
            "whatsapp",
        ]

    def test_lookup_is_case_insensitive(self) -> None:
        assert isinstance(get_normalizer("Twilio_SMS"), TwilioSmsNormalizer)
        assert get_normalizer("carrier_pigeon") is None

    def test_register_extra_normalizer(self, monkeypatch) -> None:
        """Registro adicional fica visível em get_normalizer e na listagem."""
        monkeypatch.setattr(registry, "_registry", dict(registry._registry))
        normalizer = TwilioSmsNormalizer(default_country_code="55")

        register_normalizer("Twilio_BR", normalizer)

        assert get_normalizer("twilio_br") is normalizer
        assert "twilio_br" in supported_provider_types()
