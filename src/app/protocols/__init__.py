"""Protocolos e contratos do core da aplicação."""

from .dedupe import IdempotencyStoreProtocol
from .media import MediaResolverProtocol
from .models import (
    Attachment,
    Contact,
    DuplicateCheckResult,
    IdentityMatch,
    IdentityResolution,
    IngestionError,
    IngestionResult,
    NormalizedMessage,
    ProcessingMetrics,
    RawProviderMessage,
    ThreadingResult,
)
from .normalizer import NormalizationError, ProviderNormalizerProtocol
from .persistence import IngestionRepositoryProtocol

__all__ = [
    "Attachment",
    "Contact",
    "DuplicateCheckResult",
    "IdempotencyStoreProtocol",
    "IdentityMatch",
    "IdentityResolution",
    "IngestionError",
    "IngestionRepositoryProtocol",
    "IngestionResult",
    "MediaResolverProtocol",
    "NormalizationError",
    "NormalizedMessage",
    "ProcessingMetrics",
    "ProviderNormalizerProtocol",
    "RawProviderMessage",
    "ThreadingResult",
]
