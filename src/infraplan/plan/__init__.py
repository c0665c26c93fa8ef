"""Plan engine - diff desired graph against state."""

from .models import Action, Plan, PlannedAction
from .engine import compute_plan, diff_attributes

__all__ = [
    "Action",
    "Plan",
    "PlannedAction",
    "compute_plan",
    "diff_attributes",
]
