"""
Content unit loading and file discovery.

A content unit is one JSON file under a category root. Files are listed
in sorted order within each root so repeated builds merge identically.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Sequence, Tuple

from .errors import MalformedInputError

logger = logging.getLogger(__name__)


def load_content_unit(path: Path) -> Dict[str, Any]:
    """
    Read and parse one content file.

    Args:
        path: Path to the JSON file

    Returns:
        Parsed top-level object

    Raises:
        MalformedInputError: If the file is not UTF-8 JSON or not a JSON object
        OSError: If the file cannot be read
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            unit = json.loads(f.read())
    except UnicodeDecodeError as e:
        raise MalformedInputError(str(path), f"not valid UTF-8 ({e})") from e
    except json.JSONDecodeError as e:
        raise MalformedInputError(str(path), f"invalid JSON ({e})") from e

    if not isinstance(unit, dict):
        raise MalformedInputError(
            str(path), f"top-level value must be an object, got {type(unit).__name__}"
        )

    return unit


def discover_content_files(base_dir: Path, roots: Sequence[str]) -> List[Tuple[str, Path]]:
    """
    List content files for every category root, in root order.

    Missing roots are skipped. Within a root only ``*.json`` files are
    returned, sorted by name.

    Args:
        base_dir: Directory the roots are relative to
        roots: Category directory names in merge order

    Returns:
        List of (root, file_path) tuples

    Raises:
        NotADirectoryError: If a root exists but is not a directory
    """
    found: List[Tuple[str, Path]] = []

    for root in roots:
        root_dir = base_dir / root
        if not root_dir.exists():
            logger.debug(f"Skipping missing content root: {root_dir}")
            continue
        if not root_dir.is_dir():
            raise NotADirectoryError(f"Content root is not a directory: {root_dir}")

        names = sorted(
            entry.name for entry in root_dir.iterdir()
            if entry.name.endswith(".json") and entry.is_file()
        )
        for name in names:
            found.append((root, root_dir / name))

    return found
