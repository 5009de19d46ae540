"""Serviços de aplicação.

Unidades reutilizáveis de orquestração (sem IO direto).
Implementações concretas de IO ficam em app/infra/.
"""

from app.services.conversation_grouper import ConversationGrouper, ThreadingOptions
from app.services.deduplicator import DeduplicationOptions, MessageDeduplicator
from app.services.idempotency_guard import IdempotencyGuard
from app.services.identity_resolver import IdentityResolutionOptions, IdentityResolver

__all__ = [
    "ConversationGrouper",
    "DeduplicationOptions",
    "IdempotencyGuard",
    "IdentityResolutionOptions",
    "IdentityResolver",
    "MessageDeduplicator",
    "ThreadingOptions",
]
