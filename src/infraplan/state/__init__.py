"""Persisted state of the last successful apply."""

from .models import State, ResourceSnapshot
from .store import StateStore

__all__ = [
    "State",
    "ResourceSnapshot",
    "StateStore",
]
