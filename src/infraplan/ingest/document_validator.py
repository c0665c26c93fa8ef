"""Validate declarative document structure."""

from collections import Counter
from typing import Dict, Any, List
from ..utils.errors import ParseError
from ..utils.logging import get_logger

logger = get_logger("ingest.document_validator")

REQUIRED_RECORD_FIELDS = ["kind", "local_name"]


def extract_records(data: Any) -> List[Any]:
    """Return the raw record list from either document shape (mapping or bare list)."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        return data.get("resources", [])
    raise ParseError(
        "Document must be a mapping with a 'resources' list or a bare list of records."
    )


def validate_document_structure(data: Any) -> None:
    """
    Validate document structure before records are parsed.

    Args:
        data: Parsed YAML/JSON document

    Raises:
        ParseError: If document structure is invalid
    """
    if data is None:
        raise ParseError("Document is empty.")

    if isinstance(data, dict):
        if "resources" not in data:
            logger.warning("Document has no 'resources' key - treating as empty")
        unknown_keys = sorted(k for k in data if k not in ("resources", "version"))
        if unknown_keys:
            logger.warning(f"Ignoring unknown top-level keys: {', '.join(unknown_keys)}")

    records = extract_records(data)
    if not isinstance(records, list):
        raise ParseError("Document 'resources' must be a list of records.")

    for index, record in enumerate(records):
        problems = validate_record(record)
        if problems:
            label = _record_label(record, index)
            raise ParseError(f"Malformed record {label}: {'; '.join(problems)}")

    logger.debug("Document structure validation passed")


def validate_record(record: Any) -> List[str]:
    """
    Validate a single record structure.

    Args:
        record: Raw record

    Returns:
        List of problems (empty if valid)
    """
    problems = []

    if not isinstance(record, dict):
        problems.append("record must be a mapping")
        return problems

    missing_fields = [field for field in REQUIRED_RECORD_FIELDS if not record.get(field)]
    if missing_fields:
        problems.append(f"missing required fields: {', '.join(missing_fields)}")

    for field in REQUIRED_RECORD_FIELDS:
        value = record.get(field)
        if value is not None and not isinstance(value, str):
            problems.append(f"'{field}' must be a string")

    attributes = record.get("attributes")
    if attributes is not None and not isinstance(attributes, dict):
        problems.append("'attributes' must be a mapping")

    depends_on = record.get("depends_on")
    if depends_on is not None and not (
        isinstance(depends_on, list) and all(isinstance(d, str) for d in depends_on)
    ):
        problems.append("'depends_on' must be a list of addresses")

    return problems


def get_document_summary(data: Any) -> Dict[str, Any]:
    """
    Extract summary information from a document.

    Args:
        data: Parsed document

    Returns:
        Dictionary with record count and counts per kind
    """
    records = [r for r in extract_records(data) if isinstance(r, dict)]
    kinds = Counter(str(r.get("kind", "unknown")) for r in records)
    return {
        "version": data.get("version", "unknown") if isinstance(data, dict) else "unknown",
        "resource_count": len(records),
        "kind_counts": dict(sorted(kinds.items())),
    }


def _record_label(record: Any, index: int) -> str:
    if isinstance(record, dict) and record.get("kind") and record.get("local_name"):
        return f"'{record['kind']}.{record['local_name']}' (index {index})"
    return f"at index {index}"
