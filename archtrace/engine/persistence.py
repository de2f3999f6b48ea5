"""JSON load/save for models.

The file format is the dict produced by :meth:`Model.to_dict`::

    {
      "elements": [{"id": ..., "type": ..., "layer": ..., "name": ...}, ...],
      "relationships": [{"id": ..., "type": ..., "sourceElementId": ...,
                         "targetElementId": ..., "attrs": {...}}, ...]
    }

``elements`` and ``relationships`` may also be id-keyed objects.

Security:
    Paths are resolved to absolute paths and rejected if they contain null
    bytes or escape an optional base directory.
"""

from __future__ import annotations

import json
from pathlib import Path

from .model import Model


def _validate_path(path: str | Path, base_dir: Path | None = None) -> Path:
    """Validate and resolve a file path.

    Args:
        path: The path to validate
        base_dir: Optional base directory that the path must be within

    Returns:
        Resolved absolute Path

    Raises:
        ValueError: If path is invalid or attempts path traversal
    """
    if "\x00" in str(path):
        raise ValueError(f"Invalid path (contains null bytes): {str(path)!r}")

    resolved = Path(path).resolve()

    if base_dir is not None:
        base_resolved = base_dir.resolve()
        try:
            resolved.relative_to(base_resolved)
        except ValueError:
            raise ValueError(
                f"Path traversal detected: {path} is outside base directory {base_dir}"
            )

    return resolved


def save_model(model: Model, path: str | Path, base_dir: Path | None = None) -> Path:
    """Write ``model`` as JSON and return the resolved path.

    Raises:
        ValueError: If path is invalid
    """
    validated_path = _validate_path(path, base_dir)
    validated_path.parent.mkdir(parents=True, exist_ok=True)
    with open(validated_path, "w", encoding="utf-8") as f:
        json.dump(model.to_dict(), f, indent=2, ensure_ascii=False)
    return validated_path


def load_model(path: str | Path, base_dir: Path | None = None) -> Model:
    """Read a model from a JSON file.

    Raises:
        ValueError: If path is invalid or the top level is not an object
        FileNotFoundError: If file does not exist
        json.JSONDecodeError: If the file is not valid JSON
    """
    validated_path = _validate_path(path, base_dir)
    with open(validated_path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Model file must contain a JSON object: {validated_path}")
    return Model.from_dict(data)
