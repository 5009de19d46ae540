"""Helpers compartilhados pelos normalizers de provedores.

Decodificação de payload, parsing de timestamps, classificação de
conteúdo por MIME e montagem final do NormalizedMessage (thread key e
message_hash calculados num único lugar).
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from typing import TYPE_CHECKING, Any, TypeVar
from urllib.parse import parse_qsl

from pydantic import BaseModel, ValidationError

from app.constants.ingestion import TIMESTAMP_FROM_RECEIPT, TIMESTAMP_SOURCE_KEY, ContentType
from app.domain.fingerprint import compute_message_hash
from app.domain.thread_key import generate_contextual_thread_key, generate_thread_key
from app.protocols.models import NormalizedMessage
from app.protocols.normalizer import NormalizationError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from app.constants.ingestion import Channel, Direction
    from app.protocols.models import Attachment, Contact, RawProviderMessage

ModelT = TypeVar("ModelT", bound=BaseModel)

# Acima disso o valor numérico é tratado como epoch em milissegundos
_EPOCH_MS_THRESHOLD = 9_999_999_999
_NUMERIC = re.compile(r"^\d+(\.\d+)?$")


# ──────────────────────────────────────────────────────────────
# Payload
# ──────────────────────────────────────────────────────────────


def decode_json_payload(payload: bytes | str | Mapping[str, Any]) -> dict[str, Any]:
    """Converte o payload bruto em dict JSON."""
    if isinstance(payload, Mapping):
        return dict(payload)
    try:
        text = payload.decode("utf-8") if isinstance(payload, bytes) else payload
        data = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise NormalizationError("Payload não é JSON válido") from exc
    if not isinstance(data, dict):
        raise NormalizationError("Payload JSON deve ser um objeto")
    return data


def decode_form_payload(payload: bytes | str | Mapping[str, Any]) -> dict[str, Any]:
    """Converte payload form-urlencoded (ou JSON) em dict."""
    if isinstance(payload, Mapping):
        return dict(payload)
    try:
        text = payload.decode("utf-8") if isinstance(payload, bytes) else payload
    except UnicodeDecodeError as exc:
        raise NormalizationError("Payload não é UTF-8") from exc
    stripped = text.strip()
    if stripped.startswith("{"):
        return decode_json_payload(stripped)
    return dict(parse_qsl(stripped, keep_blank_values=True))


def validate_model(model: type[ModelT], data: Any, provider: str) -> ModelT:
    """Valida o payload com pydantic, convertendo erros em NormalizationError."""
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        fields = sorted({".".join(str(part) for part in err["loc"]) for err in exc.errors()})
        raise NormalizationError(
            f"Payload {provider} inválido: campos {', '.join(fields)}"
        ) from exc


# ──────────────────────────────────────────────────────────────
# Timestamps e conteúdo
# ──────────────────────────────────────────────────────────────


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def parse_event_timestamp(value: Any) -> datetime | None:
    """Interpreta epoch (s ou ms), ISO-8601 ou RFC 2822.

    Retorna None para valores ausentes ou ilegíveis. O resultado é
    sempre UTC.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return _as_utc(value)

    if isinstance(value, int | float) or (isinstance(value, str) and _NUMERIC.match(value.strip())):
        number = float(value)
        if number > _EPOCH_MS_THRESHOLD:
            number /= 1000
        try:
            return datetime.fromtimestamp(number, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return None

    text = str(value).strip()
    try:
        return _as_utc(datetime.fromisoformat(text))
    except ValueError:
        pass
    try:
        return _as_utc(parsedate_to_datetime(text))
    except (TypeError, ValueError, IndexError):
        return None


def content_type_from_mime(mime_type: str | None) -> ContentType:
    """Classifica anexo pelo tipo principal do MIME."""
    if not mime_type:
        return ContentType.DOCUMENT
    major = mime_type.split("/", 1)[0].strip().lower()
    return {
        "image": ContentType.IMAGE,
        "audio": ContentType.AUDIO,
        "video": ContentType.VIDEO,
    }.get(major, ContentType.DOCUMENT)


def primary_content_type(attachments: Sequence[Attachment]) -> ContentType:
    """Conteúdo principal: o primeiro anexo, ou texto."""
    return attachments[0].type if attachments else ContentType.TEXT


def clean_body(value: str | None) -> str | None:
    """Corpo vazio ou só com espaços vira None."""
    if value is None or not value.strip():
        return None
    return value


# ──────────────────────────────────────────────────────────────
# Montagem
# ──────────────────────────────────────────────────────────────


def build_normalized_message(
    raw: RawProviderMessage,
    *,
    provider_message_id: str,
    channel: Channel,
    direction: Direction,
    from_contact: Contact,
    to_contact: Contact,
    timestamp: datetime | None,
    body: str | None,
    content_type: ContentType,
    attachments: Sequence[Attachment] = (),
    provider_meta: Mapping[str, Any] | None = None,
    native_thread_id: str | None = None,
    subject: str | None = None,
    reply_to_message_id: str | None = None,
) -> NormalizedMessage:
    """Monta o NormalizedMessage calculando thread_key e message_hash.

    timestamp=None (provedor sem horário do evento) usa raw.received_at e
    registra a origem em provider_meta.
    """
    thread_key = generate_thread_key(
        str(channel),
        from_contact.normalized_value,
        to_contact.normalized_value,
        native_thread_id,
    )
    if not native_thread_id:
        thread_key = generate_contextual_thread_key(
            thread_key,
            subject=subject,
            reply_to_message_id=reply_to_message_id,
        )

    meta = dict(provider_meta or {})
    if native_thread_id:
        meta["native_thread_id"] = native_thread_id
    if timestamp is None:
        timestamp = _as_utc(raw.received_at)
        meta[TIMESTAMP_SOURCE_KEY] = TIMESTAMP_FROM_RECEIPT
    else:
        meta[TIMESTAMP_SOURCE_KEY] = "provider"

    return NormalizedMessage(
        provider_message_id=provider_message_id,
        provider_id=raw.provider_id,
        channel=channel,
        direction=direction,
        from_contact=from_contact,
        to_contact=to_contact,
        timestamp=timestamp,
        body=body,
        content_type=content_type,
        thread_key=thread_key,
        message_hash=compute_message_hash(
            str(channel),
            from_contact.normalized_value,
            to_contact.normalized_value,
            body,
            str(content_type),
        ),
        provider_meta=meta,
        attachments=tuple(attachments),
    )
