"""Custom exception classes for infraplan."""

from typing import List, Optional


class InfraPlanError(Exception):
    """Base exception for all infraplan errors."""
    pass


class StructuralError(InfraPlanError):
    """Base for errors found before any provider call; aborts the whole run."""

    def __init__(self, message: str, node: Optional[str] = None, attribute: Optional[str] = None):
        self.node = node
        self.attribute = attribute
        location = ""
        if node and attribute:
            location = f"{node} (attribute '{attribute}'): "
        elif node:
            location = f"{node}: "
        super().__init__(f"{location}{message}")


class ParseError(StructuralError):
    """Raised when a document or one of its records is malformed."""
    pass


class UnresolvedReferenceError(StructuralError):
    """Raised when a reference points to a nonexistent node or attribute."""

    def __init__(self, message: str, node: Optional[str] = None,
                 attribute: Optional[str] = None, target: Optional[str] = None):
        self.target = target
        super().__init__(message, node=node, attribute=attribute)


class CycleError(StructuralError):
    """Raised when the reference graph contains a cycle."""

    def __init__(self, cycle: List[str]):
        self.cycle = list(cycle)
        path = " -> ".join(self.cycle + self.cycle[:1])
        super().__init__(f"Dependency cycle detected: {path}")


class ProviderError(InfraPlanError):
    """Raised by a provider when a create/update/delete call fails."""

    def __init__(self, message: str, node: Optional[str] = None):
        self.node = node
        super().__init__(message)


class StateIOError(InfraPlanError):
    """Raised when the state file cannot be read or written."""
    pass


class StalePlanError(InfraPlanError):
    """Raised when a saved plan no longer matches the document or the state."""
    pass


class ConfigError(InfraPlanError):
    """Raised when configuration is invalid or missing."""
    pass
