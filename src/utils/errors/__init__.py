"""Exceções utilitárias compartilhadas."""

from .exceptions import (
    InfrastructureError,
    MediaFetchError,
    PersistenceError,
    RedisConnectionError,
)

__all__ = [
    "InfrastructureError",
    "MediaFetchError",
    "PersistenceError",
    "RedisConnectionError",
]
