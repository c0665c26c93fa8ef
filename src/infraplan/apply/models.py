"""Apply outcome models."""

from enum import Enum
from typing import Dict, List
from pydantic import BaseModel, Field

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_INTERRUPTED = 130


class ActionStatus(str, Enum):
    """Final status of one planned action."""
    APPLIED = "applied"
    FAILED = "failed"
    SKIPPED = "skipped"
    CANCELLED = "cancelled"


class ApplyReport(BaseModel):
    """Summary of an apply run. Lists keep plan order."""
    applied: List[str] = Field(default_factory=list)
    failed: Dict[str, str] = Field(default_factory=dict, description="Address -> error message")
    skipped: List[str] = Field(default_factory=list, description="Dependents of failed actions")
    cancelled: List[str] = Field(default_factory=list, description="Not started before interrupt")

    @classmethod
    def from_statuses(cls, order: List[str], status: Dict[str, ActionStatus], errors: Dict[str, str]) -> "ApplyReport":
        report = cls()
        for address in order:
            outcome = status[address]
            if outcome == ActionStatus.APPLIED:
                report.applied.append(address)
            elif outcome == ActionStatus.FAILED:
                report.failed[address] = errors.get(address, "")
            elif outcome == ActionStatus.SKIPPED:
                report.skipped.append(address)
            else:
                report.cancelled.append(address)
        return report

    def counts(self) -> Dict[str, int]:
        return {
            "applied": len(self.applied),
            "failed": len(self.failed),
            "skipped": len(self.skipped),
            "cancelled": len(self.cancelled),
        }

    @property
    def success(self) -> bool:
        return not self.failed and not self.cancelled

    @property
    def exit_code(self) -> int:
        if self.failed:
            return EXIT_FAILED
        if self.cancelled:
            return EXIT_INTERRUPTED
        return EXIT_OK
