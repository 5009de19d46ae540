"""Normalizer Messenger (Facebook e Instagram) — entry[].messaging[]."""

from .normalizer import MessengerNormalizer

__all__ = ["MessengerNormalizer"]
