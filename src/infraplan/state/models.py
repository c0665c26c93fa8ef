"""Pydantic models for persisted state."""

from datetime import datetime, timezone
from typing import Any, Dict, List
from pydantic import BaseModel, Field

STATE_VERSION = 1

_MISSING = object()


class ResourceSnapshot(BaseModel):
    """Last-applied attributes and provider outputs of one node."""
    address: str = Field(..., description="'kind.local_name'")
    kind: str
    local_name: str
    resource_id: str = Field(..., description="Provider-assigned identifier")
    attributes: Dict[str, Any] = Field(default_factory=dict, description="Resolved attributes sent to the provider")
    outputs: Dict[str, Any] = Field(default_factory=dict, description="Attributes returned by the provider")
    dependencies: List[str] = Field(default_factory=list, description="Addresses this node depended on when applied")
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def value_of(self, attribute: str, default: Any = None) -> Any:
        """Look up an attribute as a reference would see it."""
        if attribute == "id":
            return self.resource_id
        value = self.outputs.get(attribute, _MISSING)
        if value is _MISSING:
            value = self.attributes.get(attribute, default)
        return value


class State(BaseModel):
    """Mapping of node address -> last-applied snapshot."""
    version: int = Field(default=STATE_VERSION)
    serial: int = Field(default=0, ge=0, description="Bumped on every flush")
    resources: Dict[str, ResourceSnapshot] = Field(default_factory=dict)

    def get(self, address: str):
        return self.resources.get(address)

    def addresses(self) -> List[str]:
        return sorted(self.resources)
