"""
Best-known last-modified time for content files.

Prefers the commit time of the last git commit touching the file, since
checkouts reset filesystem mtimes. Falls back to the filesystem mtime.
"""

import logging
import math
import os
import subprocess
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


def git_last_modified(path: Path) -> Optional[int]:
    """
    Unix seconds of the last commit touching path.

    Returns:
        Commit timestamp, or None outside a repository, for untracked files,
        or when git is not installed
    """
    try:
        result = subprocess.run(
            ['git', 'log', '-1', '--format=%ct', '--', os.path.basename(path)],
            capture_output=True,
            text=True,
            cwd=os.path.dirname(os.path.abspath(path)),
        )
    except OSError as e:
        logger.debug(f"git unavailable for {path}: {e}")
        return None

    if result.returncode != 0:
        return None

    try:
        ts = int(result.stdout.strip())
    except ValueError:
        return None

    return ts if ts > 0 else None


def fs_mtime(path: Path) -> Optional[int]:
    """Filesystem modification time in whole seconds, or None."""
    try:
        return math.floor(os.stat(path).st_mtime)
    except OSError:
        return None


def best_last_modified(path: Path) -> Optional[int]:
    """Git commit time if available, else filesystem mtime."""
    ts = git_last_modified(path)
    if ts is not None:
        return ts
    return fs_mtime(path)
