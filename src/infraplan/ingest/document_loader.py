"""Load and validate declarative resource documents (YAML or JSON)."""

import json
from pathlib import Path
from typing import Any, List
import yaml
from pydantic import ValidationError
from .models import Document, ResourceRecord
from .document_validator import validate_document_structure, extract_records, get_document_summary
from ..utils.errors import ParseError
from ..utils.logging import get_logger

logger = get_logger("ingest.document_loader")


def read_document(document_path: str) -> Any:
    """
    Read a document file without interpreting its records.

    JSON files go through the json module; everything else through yaml,
    which also accepts JSON.

    Raises:
        ParseError: If file cannot be read or parsed
    """
    path = Path(document_path)

    if not path.exists():
        raise ParseError(
            f"Document not found: {document_path}. "
            "Please check the file path and ensure the file exists."
        )

    if not path.is_file():
        raise ParseError(f"Path is not a file: {document_path}.")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            if path.suffix.lower() == ".json":
                return json.load(f)
            return yaml.safe_load(f)
    except json.JSONDecodeError as e:
        raise ParseError(f"Invalid JSON in document {document_path}: {e}")
    except yaml.YAMLError as e:
        raise ParseError(f"Invalid YAML in document {document_path}: {e}")
    except OSError as e:
        raise ParseError(f"Error reading document {document_path}: {e}")


def parse_document(data: Any) -> Document:
    """
    Turn raw parsed data into a validated Document.

    Raises:
        ParseError: If any record is malformed
    """
    validate_document_structure(data)

    records: List[ResourceRecord] = []
    for index, raw in enumerate(extract_records(data)):
        try:
            records.append(ResourceRecord(**raw))
        except ValidationError as e:
            address = f"{raw.get('kind')}.{raw.get('local_name')}"
            first = e.errors()[0]
            field = ".".join(str(p) for p in first.get("loc", ()))
            raise ParseError(
                f"Malformed record at index {index}: {first.get('msg')}",
                node=address,
                attribute=field or None,
            ) from e

    return Document(resources=records)


def load_document(document_path: str) -> Document:
    """
    Load and validate a declarative document file.

    Args:
        document_path: Path to YAML or JSON document

    Returns:
        Parsed Document with records in declaration order

    Raises:
        ParseError: If file cannot be loaded or is invalid
    """
    data = read_document(document_path)
    document = parse_document(data)

    summary = get_document_summary(data)
    logger.info(
        f"Loaded document from {document_path} "
        f"(resources: {summary['resource_count']}, kinds: {len(summary['kind_counts'])})"
    )
    return document
