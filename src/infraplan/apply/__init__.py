"""Apply executor - run planned actions against a provider."""

from .models import ActionStatus, ApplyReport
from .executor import apply_plan, DEFAULT_PARALLELISM

__all__ = [
    "ActionStatus",
    "ApplyReport",
    "apply_plan",
    "DEFAULT_PARALLELISM",
]
