"""
Source registry and metadata reconciliation.

Folds each content unit's metadata block into one bundle-level record:
- sources: deduplicated by id, first occurrence wins
- edition: first edition seen, else the previous bundle's, else DEFAULT_EDITION
- dateAdded: previous bundle's value (stable across rebuilds), else the
  minimum seen, else now
- dateLastModified: maximum seen (unit metadata and file timestamps), else now
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Optional, Set

from .models import BundleMetadata, is_number, source_id

logger = logging.getLogger(__name__)


DEFAULT_EDITION = "2024"


class MetadataReconciler:
    """Running accumulator for bundle metadata. One instance per build."""

    def __init__(self):
        self.sources: List[Dict[str, Any]] = []
        self._source_ids: Set[str] = set()
        self.detected_edition: Optional[str] = None
        self.min_date_added: float = math.inf
        self.max_date_last_modified: float = 0

    def add_sources(self, sources: Any) -> None:
        """Append descriptors whose id has not been seen yet."""
        if not isinstance(sources, list):
            return

        for descriptor in sources:
            sid = source_id(descriptor)
            if sid is None:
                continue
            if sid in self._source_ids:
                logger.debug(f"Dropping duplicate source: {sid}")
                continue
            self._source_ids.add(sid)
            self.sources.append(descriptor)

    def fold_unit_metadata(self, meta: Any) -> None:
        """Fold one unit's metadata block (sources, edition, dates)."""
        if not isinstance(meta, dict):
            return

        self.add_sources(meta.get("sources"))

        edition = meta.get("edition")
        if edition and isinstance(edition, str) and self.detected_edition is None:
            self.detected_edition = edition

        date_added = meta.get("dateAdded")
        if is_number(date_added):
            self.min_date_added = min(self.min_date_added, date_added)

        date_last_modified = meta.get("dateLastModified")
        if is_number(date_last_modified):
            self.max_date_last_modified = max(self.max_date_last_modified, date_last_modified)

    def fold_external_timestamp(self, ts: Optional[float]) -> None:
        """
        Fold a file's best-known last-modified time.

        Always raises the running maximum; seeds the minimum only when no
        dateAdded candidate exists yet.
        """
        if not is_number(ts):
            return

        self.max_date_last_modified = max(self.max_date_last_modified, ts)
        if not math.isfinite(self.min_date_added):
            self.min_date_added = ts

    def finalize(self, previous: Optional[Dict[str, Any]], now: int) -> BundleMetadata:
        """
        Produce the bundle metadata.

        Args:
            previous: Metadata of the bundle from the last build, if any
            now: Wall-clock unix seconds captured once for the build

        Returns:
            BundleMetadata with every field populated
        """
        previous = previous or {}

        edition = self.detected_edition or previous.get("edition") or DEFAULT_EDITION

        if is_number(previous.get("dateAdded")):
            date_added = previous["dateAdded"]
        elif math.isfinite(self.min_date_added):
            date_added = self.min_date_added
        else:
            date_added = now

        if math.isfinite(self.max_date_last_modified) and self.max_date_last_modified > 0:
            date_last_modified = self.max_date_last_modified
        else:
            date_last_modified = now

        return BundleMetadata(
            sources=list(self.sources),
            edition=edition,
            date_added=int(date_added),
            date_last_modified=int(date_last_modified),
        )
