"""Extrator de anexos MMS do form do webhook SMS.

Estrutura (Twilio): NumMedia=N e, para i em [0, N), MediaUrl{i} e
MediaContentType{i}. Não faz validação de negócio.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from api.normalizers._common import content_type_from_mime
from app.protocols.models import Attachment

if TYPE_CHECKING:
    from collections.abc import Mapping


def extract_media_attachments(form: Mapping[str, Any], num_media: int) -> list[Attachment]:
    """Lê os pares MediaUrl{i}/MediaContentType{i} presentes no form."""
    attachments: list[Attachment] = []
    for index in range(num_media):
        url = form.get(f"MediaUrl{index}")
        if not url:
            continue
        mime_type = form.get(f"MediaContentType{index}") or None
        attachments.append(
            Attachment(
                type=content_type_from_mime(mime_type),
                url=str(url),
                mime_type=mime_type,
            )
        )
    return attachments
