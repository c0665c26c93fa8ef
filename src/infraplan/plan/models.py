"""Plan types: ordered actions moving State to the desired graph."""

import json
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, ValidationError
from ..utils.errors import ParseError


class Action(str, Enum):
    """Planned action types."""
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class PlannedAction(BaseModel):
    """One step of a plan."""
    address: str = Field(..., description="'kind.local_name'")
    kind: str
    local_name: str
    action: Action
    requires_replacement: bool = Field(default=False, description="Executed as delete + create")
    changed_attributes: List[str] = Field(default_factory=list)
    replace_attributes: List[str] = Field(default_factory=list, description="Changed attributes the provider marks immutable")
    resource_id: Optional[str] = Field(default=None, description="Provider id from State (update/delete)")
    prior: Optional[Dict[str, Any]] = Field(default=None, description="Attributes from State")
    desired: Optional[Dict[str, Any]] = Field(default=None, description="Resolved attributes; unknowns rendered")
    after: List[str] = Field(default_factory=list, description="Addresses of actions that must finish first")

    @property
    def label(self) -> str:
        if self.requires_replacement:
            return "replace"
        return self.action.value


_SIGNATURE_FIELDS = {
    "address", "action", "requires_replacement", "changed_attributes",
    "resource_id", "desired", "after",
}


class Plan(BaseModel):
    """Ordered actions; creates/updates in dependency order, deletes in reverse."""
    actions: List[PlannedAction] = Field(default_factory=list)
    state_serial: int = Field(default=0, description="Serial of the State the plan was computed from")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_empty(self) -> bool:
        return not self.actions

    def get(self, address: str) -> Optional[PlannedAction]:
        for action in self.actions:
            if action.address == address:
                return action
        return None

    def addresses(self) -> List[str]:
        return [a.address for a in self.actions]

    def signature(self) -> List[Dict[str, Any]]:
        """What the plan would do, without timestamps or prior values."""
        return [a.model_dump(mode="json", include=_SIGNATURE_FIELDS) for a in self.actions]

    def summary(self) -> Dict[str, int]:
        counts = {a.value: 0 for a in Action}
        counts["replace"] = 0
        for action in self.actions:
            counts[action.action.value] += 1
            if action.requires_replacement:
                counts["replace"] += 1
        return counts

    def save(self, path: Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        data = self.model_dump(mode="json")
        path.write_text(json.dumps(data, indent=2, sort_keys=True) + "\n", encoding="utf-8")

    @classmethod
    def load(cls, path: Path) -> "Plan":
        """
        Read a plan written by save().

        Raises:
            ParseError: If the file is missing or is not a saved plan
        """
        path = Path(path)
        if not path.is_file():
            raise ParseError(f"Plan file not found: {path}")
        try:
            return cls.model_validate_json(path.read_text(encoding="utf-8"))
        except ValidationError as e:
            raise ParseError(f"Invalid plan file {path}: {e}")
        except OSError as e:
            raise ParseError(f"Error reading plan file {path}: {e}")
