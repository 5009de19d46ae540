"""Resolução de mídia — URLs de anexos referenciados por ID."""

from __future__ import annotations

from app.infra.media.whatsapp_media_resolver import WhatsAppMediaResolver

__all__ = ["WhatsAppMediaResolver"]
