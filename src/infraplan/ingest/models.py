"""Pydantic models for declarative resource documents."""

from typing import List, Dict, Any
from pydantic import BaseModel, Field, field_validator

IDENTIFIER_PATTERN = r"^[A-Za-z_][A-Za-z0-9_-]*$"


class ResourceRecord(BaseModel):
    """One declared resource: a typed record with named attributes."""
    kind: str = Field(..., pattern=IDENTIFIER_PATTERN, description="Resource type (e.g., 'aws_vpc')")
    local_name: str = Field(..., pattern=IDENTIFIER_PATTERN, description="Name unique within its kind")
    attributes: Dict[str, Any] = Field(default_factory=dict, description="Literal values and ${...} references")
    depends_on: List[str] = Field(default_factory=list, description="Explicit 'kind.local_name' dependencies")

    @field_validator("attributes", mode="before")
    @classmethod
    def _attributes_default(cls, value: Any) -> Any:
        # "attributes:" with nothing under it loads as None from YAML
        return {} if value is None else value

    @property
    def address(self) -> str:
        return f"{self.kind}.{self.local_name}"


class Document(BaseModel):
    """Declarative document - ordered sequence of resource records."""
    resources: List[ResourceRecord] = Field(default_factory=list, description="Records in declaration order")
