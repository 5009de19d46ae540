"""Resolver de mídia do WhatsApp (Graph API).

Webhooks do WhatsApp trazem apenas o media_id; a URL (temporária) é
obtida consultando GET /{version}/{media_id} com o access token.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

import httpx

from app.constants.ingestion import Channel
from app.protocols.media import MediaResolverProtocol
from utils.errors import MediaFetchError

if TYPE_CHECKING:
    from app.protocols.models import Attachment, NormalizedMessage
    from config.settings.whatsapp import WhatsAppSettings

logger = logging.getLogger(__name__)

_MAX_TIMEOUT_SECONDS = 30.0


class WhatsAppMediaResolver(MediaResolverProtocol):
    """Resolve media_id -> URL via Graph API.

    Args:
        settings: Settings do canal WhatsApp (token e endpoint)
        client: Cliente httpx opcional (injetável em testes); quando
            ausente, um cliente é aberto por resolução
    """

    def __init__(
        self,
        settings: WhatsAppSettings,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings
        self._client = client
        self._timeout = min(settings.request_timeout_seconds, _MAX_TIMEOUT_SECONDS)

    async def resolve(self, attachment: Attachment, message: NormalizedMessage) -> str | None:
        """Retorna a URL da mídia ou None quando não se aplica.

        Timeouts, falhas de conexão, 429 e 5xx são retentados com backoff
        exponencial; demais 4xx falham na hora.

        Raises:
            MediaFetchError: Resposta recusada ou tentativas esgotadas
        """
        if message.channel != Channel.WHATSAPP or not attachment.media_id:
            return None

        max_retries = max(0, self._settings.max_retries)
        last_error: Exception | None = None
        for attempt in range(max_retries + 1):
            try:
                return await self._lookup(attachment.media_id)
            except httpx.HTTPStatusError as exc:
                status = exc.response.status_code
                if status != 429 and status < 500:
                    logger.warning(
                        "whatsapp_media_lookup_rejected",
                        extra={"status_code": status, "attempt": attempt + 1},
                    )
                    raise MediaFetchError(
                        f"Graph API recusou a consulta de mídia (HTTP {status})"
                    ) from exc
                last_error = exc
                logger.warning(
                    "whatsapp_media_lookup_failed",
                    extra={"status_code": status, "attempt": attempt + 1},
                )
            except (httpx.TimeoutException, httpx.NetworkError) as exc:
                last_error = exc
                logger.warning(
                    "whatsapp_media_lookup_failed",
                    extra={"error_type": type(exc).__name__, "attempt": attempt + 1},
                )
            except (httpx.HTTPError, ValueError) as exc:
                raise MediaFetchError("Falha ao resolver mídia do WhatsApp") from exc

            if attempt < max_retries:
                await _backoff_sleep(
                    attempt,
                    self._settings.backoff_base_seconds,
                    self._settings.backoff_max_seconds,
                )

        raise MediaFetchError("Falha ao resolver mídia do WhatsApp") from last_error

    async def _lookup(self, media_id: str) -> str | None:
        endpoint = self._settings.get_media_lookup_endpoint(media_id)
        headers = {"Authorization": f"Bearer {self._settings.access_token}"}
        if self._client is not None:
            response = await self._client.get(endpoint, headers=headers, timeout=self._timeout)
        else:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(endpoint, headers=headers)
        response.raise_for_status()
        data = response.json()
        url = data.get("url") if isinstance(data, dict) else None
        return url or None


async def _backoff_sleep(attempt: int, base: float, max_seconds: float) -> None:
    backoff = min((2**attempt) * base, max_seconds)
    logger.info("whatsapp_media_backoff", extra={"backoff_seconds": backoff})
    await asyncio.sleep(backoff)
