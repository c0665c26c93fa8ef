"""Provider-declared metadata per resource kind: outputs and immutable attributes."""

from typing import Dict, List, Set
from pydantic import BaseModel, Field

# every kind exports its provider-assigned identifier
IMPLICIT_OUTPUTS = ("id",)


class KindSchema(BaseModel):
    """Schema of one resource kind."""
    outputs: List[str] = Field(default_factory=list, description="Computed attributes available after create")
    immutable: List[str] = Field(default_factory=list, description="Attributes whose change forces replacement")


class ProviderSchema(BaseModel):
    """Schema for all kinds a provider knows. Unknown kinds export only 'id'."""
    kinds: Dict[str, KindSchema] = Field(default_factory=dict)

    def kind(self, kind: str) -> KindSchema:
        return self.kinds.get(kind) or KindSchema()

    def outputs(self, kind: str) -> Set[str]:
        return set(IMPLICIT_OUTPUTS) | set(self.kind(kind).outputs)

    def exports(self, kind: str, attribute: str) -> bool:
        return attribute in self.outputs(kind)

    def is_immutable(self, kind: str, attribute: str) -> bool:
        return attribute in self.kind(kind).immutable

    @classmethod
    def from_config(cls, section: Dict) -> "ProviderSchema":
        return cls(kinds={name: KindSchema(**(spec or {})) for name, spec in (section or {}).items()})
