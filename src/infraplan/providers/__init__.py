"""Providers - external capability that materializes resources."""

from .base import Provider
from .memory import InMemoryProvider
from .schema import ProviderSchema, KindSchema

__all__ = [
    "Provider",
    "InMemoryProvider",
    "ProviderSchema",
    "KindSchema",
]
