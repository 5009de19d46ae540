"""Agregador de settings base.

Re-exporta todas as settings base para uso externo.
"""

from __future__ import annotations

from config.settings.base.core import (
    BaseSettings,
    Environment,
    get_base_settings,
)
from config.settings.base.dedupe import (
    IdempotencyBackend,
    IdempotencySettings,
    get_idempotency_settings,
)

__all__ = [
    # Core
    "BaseSettings",
    # Types
    "Environment",
    "IdempotencyBackend",
    # Idempotência
    "IdempotencySettings",
    "get_base_settings",
    "get_idempotency_settings",
]
