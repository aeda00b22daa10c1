"""
Bundle persistence.

The bundle is staged to a temporary sibling of the output file so that it
can be validated before the real output is created or replaced.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from .models import METADATA_KEY, Bundle, is_number

logger = logging.getLogger(__name__)


STAGED_MARKER = ".staged"

# Older bundles stored their metadata under this key
LEGACY_METADATA_KEY = "_meta"


def read_previous_metadata(path: Path) -> Optional[Dict[str, Any]]:
    """
    Read the reusable metadata of a previously written bundle.

    Args:
        path: Output path of the bundle

    Returns:
        Dict with "dateAdded" and/or "edition", or None if there is no
        usable previous bundle
    """
    if not path.exists():
        return None

    try:
        with open(path, 'r', encoding='utf-8') as f:
            previous = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning(f"Ignoring unreadable previous bundle {path}: {e}")
        return None

    if not isinstance(previous, dict):
        return None

    meta = previous.get(METADATA_KEY) or previous.get(LEGACY_METADATA_KEY)
    if not isinstance(meta, dict):
        return None

    result: Dict[str, Any] = {}
    if is_number(meta.get("dateAdded")):
        result["dateAdded"] = meta["dateAdded"]
    if meta.get("edition") and isinstance(meta.get("edition"), str):
        result["edition"] = meta["edition"]

    return result


def serialize_bundle(bundle: Bundle) -> str:
    """Pretty-printed JSON with metadata as the first key."""
    return json.dumps(bundle.to_dict(), indent=2, ensure_ascii=False) + "\n"


def staged_path(path: Path) -> Path:
    """Sibling path keeping the extension, e.g. bundle.staged.json."""
    return path.with_name(path.stem + STAGED_MARKER + path.suffix)


def stage_bundle(bundle: Bundle, path: Path) -> Path:
    """
    Write the bundle next to its final location without replacing it.

    Returns:
        Path of the staged file
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = staged_path(path)
    with open(tmp, 'w', encoding='utf-8') as f:
        f.write(serialize_bundle(bundle))
    return tmp


def commit_staged(tmp: Path, path: Path) -> None:
    """Move a staged bundle into place, overwriting any previous output."""
    tmp.replace(path)


def discard_staged(tmp: Path) -> None:
    if tmp.exists():
        tmp.unlink()


def write_bundle(bundle: Bundle, path: Path) -> None:
    """Write the bundle to path (temp file then rename)."""
    tmp = stage_bundle(bundle, path)
    try:
        commit_staged(tmp, path)
    except Exception:
        discard_staged(tmp)
        raise
