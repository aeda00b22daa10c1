"""
Content merging across units.

Only whitelisted, list-valued top-level fields are concatenated; anything
else in a unit is skipped silently.
"""

import logging
from typing import Any, Dict, List

from .models import METADATA_KEY

logger = logging.getLogger(__name__)


CONTENT_TYPES = (
    "race",
    "class",
    "subclass",
    "background",
    "feat",
    "item",
    "spell",
    "optionalfeature",
    "psionic",
    "monster",
    "vehicle",
    "variantrule",
    "table",
    "adventure",
    "book",
)


class ContentMerger:
    """Accumulates content records per content type in merge order."""

    def __init__(self, content_types=CONTENT_TYPES):
        self.content_types = frozenset(content_types)
        self.content: Dict[str, List[Any]] = {}

    def merge_unit(self, unit: Dict[str, Any]) -> None:
        for key, value in unit.items():
            if key == METADATA_KEY:
                continue
            if not isinstance(value, list):
                continue
            if key not in self.content_types:
                logger.debug(f"Skipping unrecognized content type: {key}")
                continue
            self.content.setdefault(key, []).extend(value)
