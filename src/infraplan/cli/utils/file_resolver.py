"""Document path resolution for CLI."""

from pathlib import Path

DOCUMENT_SUFFIXES = (".yaml", ".yml", ".json")


def resolve_file_path(file_path: str) -> Path:
    """
    Resolve a document path relative to the current directory.

    A name given without an extension is tried with .yaml, .yml and .json,
    so `infraplan plan network` finds network.yaml.

    Args:
        file_path: User-provided document path or name

    Returns:
        Resolved Path object

    Raises:
        FileNotFoundError: If no matching file exists
    """
    path = Path(file_path)
    if not path.is_absolute():
        path = Path.cwd() / path

    candidates = [path]
    if not path.suffix:
        candidates.extend(path.with_suffix(suffix) for suffix in DOCUMENT_SUFFIXES)

    for candidate in candidates:
        if candidate.is_file():
            return candidate.resolve()

    if path.exists():
        raise FileNotFoundError(f"Path is not a file: {file_path}. Please provide a document file.")
    raise FileNotFoundError(
        f"Document not found: {file_path}. Please check the file path and try again."
    )
