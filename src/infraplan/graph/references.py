"""Lazy cross-resource references embedded in attribute values.

Documents write a reference as ``${kind.local_name.attribute}``. A string that
is exactly one interpolation becomes a ``Reference`` and resolves to the raw
target value; a string mixing text and interpolations becomes a ``Template``
and resolves to a string. Lists and mappings are walked recursively.
"""

import json
import re
from typing import Any, Callable, Iterator, List, Tuple, Union
from pydantic import BaseModel, ConfigDict
from ..utils.errors import ParseError

INTERPOLATION = re.compile(r"\$\{([^}]*)\}")
REFERENCE_BODY = re.compile(r"^\s*([A-Za-z_][A-Za-z0-9_-]*)\.([A-Za-z_][A-Za-z0-9_-]*)\.([A-Za-z_][A-Za-z0-9_]*)\s*$")


class _Unknown:
    """Placeholder for a value that only exists after apply."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "(known after apply)"

    def __eq__(self, other: object) -> bool:
        # never equal, not even to itself: an unknown value is always a change
        return False

    def __hash__(self) -> int:
        return id(self)


UNKNOWN = _Unknown()


class Reference(BaseModel):
    """Pointer from one node's attribute to another node's output attribute."""
    model_config = ConfigDict(frozen=True)

    kind: str
    local_name: str
    attribute: str

    @property
    def target(self) -> str:
        return f"{self.kind}.{self.local_name}"

    def __str__(self) -> str:
        return f"{self.target}.{self.attribute}"


class Template(BaseModel):
    """String with one or more embedded references."""
    model_config = ConfigDict(frozen=True)

    parts: Tuple[Union[str, Reference], ...]

    def __str__(self) -> str:
        return "".join(p if isinstance(p, str) else "${" + str(p) + "}" for p in self.parts)


def parse_value(value: Any, node: str, path: str) -> Any:
    """
    Replace ${...} interpolations inside an attribute value with references.

    Args:
        value: Raw attribute value from the document
        node: Address of the owning node (for error messages)
        path: Attribute path of the value (for error messages)

    Raises:
        ParseError: If an interpolation is not of the form kind.local_name.attribute
    """
    if isinstance(value, str):
        return _parse_string(value, node, path)
    if isinstance(value, dict):
        return {k: parse_value(v, node, f"{path}.{k}") for k, v in value.items()}
    if isinstance(value, list):
        return [parse_value(v, node, f"{path}[{i}]") for i, v in enumerate(value)]
    return value


def _parse_string(value: str, node: str, path: str) -> Union[str, Reference, Template]:
    if "${" not in value:
        return value

    parts: List[Union[str, Reference]] = []
    position = 0
    for match in INTERPOLATION.finditer(value):
        if match.start() > position:
            parts.append(value[position:match.start()])
        body = REFERENCE_BODY.match(match.group(1))
        if body is None:
            raise ParseError(
                f"Malformed reference '${{{match.group(1)}}}', expected ${{kind.local_name.attribute}}",
                node=node,
                attribute=path,
            )
        parts.append(Reference(kind=body.group(1), local_name=body.group(2), attribute=body.group(3)))
        position = match.end()

    rest = value[position:]
    if "${" in rest:
        raise ParseError(f"Unterminated interpolation in '{value}'", node=node, attribute=path)
    if rest:
        parts.append(rest)

    if len(parts) == 1 and isinstance(parts[0], Reference):
        return parts[0]
    return Template(parts=tuple(parts))


def iter_references(value: Any, path: str) -> Iterator[Tuple[str, Reference]]:
    """Yield (attribute path, reference) pairs found in a parsed value."""
    if isinstance(value, Reference):
        yield path, value
    elif isinstance(value, Template):
        for part in value.parts:
            if isinstance(part, Reference):
                yield path, part
    elif isinstance(value, dict):
        for k, v in value.items():
            yield from iter_references(v, f"{path}.{k}")
    elif isinstance(value, list):
        for i, v in enumerate(value):
            yield from iter_references(v, f"{path}[{i}]")


def resolve_value(value: Any, lookup: Callable[[Reference], Any]) -> Any:
    """Materialize a parsed value; references are looked up, templates joined."""
    if isinstance(value, Reference):
        return lookup(value)
    if isinstance(value, Template):
        pieces = []
        for part in value.parts:
            resolved = part if isinstance(part, str) else lookup(part)
            if resolved is UNKNOWN:
                return UNKNOWN
            pieces.append(resolved if isinstance(resolved, str) else json.dumps(resolved, sort_keys=True, default=str))
        return "".join(pieces)
    if isinstance(value, dict):
        return {k: resolve_value(v, lookup) for k, v in value.items()}
    if isinstance(value, list):
        return [resolve_value(v, lookup) for v in value]
    return value


def contains_unknown(value: Any) -> bool:
    """True when any part of a resolved value is still UNKNOWN."""
    if value is UNKNOWN:
        return True
    if isinstance(value, dict):
        return any(contains_unknown(v) for v in value.values())
    if isinstance(value, list):
        return any(contains_unknown(v) for v in value)
    return False


def render_value(value: Any) -> Any:
    """Make a resolved or parsed value JSON-friendly."""
    if value is UNKNOWN:
        return repr(UNKNOWN)
    if isinstance(value, (Reference, Template)):
        return "${" + str(value) + "}" if isinstance(value, Reference) else str(value)
    if isinstance(value, dict):
        return {k: render_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [render_value(v) for v in value]
    return value
