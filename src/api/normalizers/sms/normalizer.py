"""Normalizer SMS (gateway Twilio) — form do webhook -> NormalizedMessage."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from api.normalizers._common import (
    build_normalized_message,
    clean_body,
    decode_form_payload,
    parse_event_timestamp,
    primary_content_type,
    validate_model,
)
from app.constants.ingestion import Channel, ContactType, Direction
from app.domain.contacts import DEFAULT_COUNTRY_CODE, build_contact, normalize_phone
from app.protocols.normalizer import NormalizationError

from .extractor import extract_media_attachments
from .schemas import TwilioSmsPayload

if TYPE_CHECKING:
    from collections.abc import Iterable

    from app.protocols.models import NormalizedMessage, RawProviderMessage

logger = logging.getLogger(__name__)

PROVIDER = "twilio"

# Status de entrega só existem para mensagens enviadas pelo negócio
OUTBOUND_STATUSES = frozenset(
    {"accepted", "queued", "sending", "sent", "delivered", "undelivered", "failed", "read"}
)


class TwilioSmsNormalizer:
    """Normalizer do provider_type twilio_sms.

    Args:
        default_country_code: Código aplicado a números de 10 dígitos
        business_numbers: Números do negócio (mensagens deles são outbound)
    """

    provider_type = "twilio_sms"

    def __init__(
        self,
        *,
        default_country_code: str = DEFAULT_COUNTRY_CODE,
        business_numbers: Iterable[str] = (),
    ) -> None:
        self._country_code = default_country_code
        self._business_numbers = frozenset(
            normalize_phone(number, default_country_code) for number in business_numbers
        )

    def normalize(self, raw: RawProviderMessage) -> NormalizedMessage:
        form = decode_form_payload(raw.payload)
        payload = validate_model(TwilioSmsPayload, form, "twilio_sms")

        message_id = payload.sid or raw.provider_message_id
        if not message_id:
            raise NormalizationError("Payload twilio_sms sem MessageSid")

        from_contact = build_contact(
            payload.from_number, ContactType.PHONE, PROVIDER, default_country_code=self._country_code
        )
        to_contact = build_contact(
            payload.to_number, ContactType.PHONE, PROVIDER, default_country_code=self._country_code
        )
        attachments = extract_media_attachments(form, payload.num_media)

        return build_normalized_message(
            raw,
            provider_message_id=message_id,
            channel=Channel.SMS,
            direction=self._direction(payload, from_contact.normalized_value),
            from_contact=from_contact,
            to_contact=to_contact,
            timestamp=parse_event_timestamp(payload.date_sent),
            body=clean_body(payload.body),
            content_type=primary_content_type(attachments),
            attachments=attachments,
            provider_meta={
                "account_sid": payload.account_sid,
                "sms_status": payload.status,
                "num_segments": payload.num_segments or 1,
                "num_media": payload.num_media,
                "gateway_direction": payload.direction,
            },
        )

    def _direction(self, payload: TwilioSmsPayload, from_value: str) -> Direction:
        if payload.direction and payload.direction.lower().startswith("outbound"):
            return Direction.OUTBOUND
        if payload.status and payload.status.lower() in OUTBOUND_STATUSES:
            return Direction.OUTBOUND
        if from_value in self._business_numbers:
            return Direction.OUTBOUND
        return Direction.INBOUND
