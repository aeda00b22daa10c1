"""
Bundle build pipeline.

    discover -> for each file: load -> validate -> fold metadata + merge
             -> finalize metadata -> stage bundle -> validate bundle -> commit

Any FATAL validation outcome aborts the build before the output file is
created or replaced. The full diagnostic goes to the side log.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional

from .config import BundleConfig
from .errors import ValidationFailedError, ValidatorUnavailableError
from .loader import discover_content_files, load_content_unit
from .merger import ContentMerger
from .metadata import MetadataReconciler
from .models import (
    CAUSE_VALIDATOR_UNAVAILABLE,
    IGNORED,
    METADATA_KEY,
    Bundle,
    ValidationOutcome,
)
from .timestamps import best_last_modified
from .validation import DiagnosticLog, SubprocessValidator, ValidationGate
from .writer import commit_staged, discard_staged, read_previous_metadata, stage_bundle

logger = logging.getLogger(__name__)


TimestampOracle = Callable[[Path], Optional[int]]


@dataclass
class BuildResult:
    bundle: Bundle
    output_path: Path
    files_processed: int
    ignored: List[str] = field(default_factory=list)

    def counts(self) -> Dict[str, int]:
        return {key: len(records) for key, records in self.bundle.content.items()}


def _raise_if_fatal(outcome: ValidationOutcome, kind: str, target: Path, side_log: DiagnosticLog) -> None:
    if not outcome.is_fatal:
        return

    side_log.append("FATAL", kind, str(target), outcome.detail)

    if outcome.cause == CAUSE_VALIDATOR_UNAVAILABLE:
        raise ValidatorUnavailableError(outcome.detail)

    label = "BUNDLE" if kind == "bundle" else "file"
    raise ValidationFailedError(
        str(target), outcome.detail, message=f"Validation failed for {label}: {target}"
    )


def build_bundle(
    config: BundleConfig,
    oracle=None,
    timestamp_oracle: TimestampOracle = best_last_modified,
    now: Optional[int] = None,
) -> BuildResult:
    """
    Build, validate and write the bundle described by config.

    Args:
        config: Effective build configuration
        oracle: Validator oracle (default: SubprocessValidator on the configured binary)
        timestamp_oracle: Returns the best-known last-modified time for a file
        now: Wall-clock unix seconds for the build (default: current time)

    Returns:
        BuildResult

    Raises:
        MalformedInputError: A content file is not a JSON object
        ValidationFailedError: The validator rejected a file or the bundle
        ValidatorUnavailableError: No validator in full mode
        OSError: Filesystem failures
    """
    if now is None:
        now = int(time.time())
    if oracle is None:
        oracle = SubprocessValidator(config.resolved_validator_bin())

    side_log = DiagnosticLog(config.side_log_path)
    gate = ValidationGate(oracle, config.validate_mode, config.ignore_rules, side_log)
    output_path = config.resolved_output()

    previous = read_previous_metadata(output_path)
    reconciler = MetadataReconciler()
    merger = ContentMerger()
    ignored: List[str] = []

    files = discover_content_files(config.base_dir, config.roots)
    logger.info(f"Found {len(files)} content file(s) in {len(config.roots)} root(s)")

    for root, path in files:
        unit = load_content_unit(path)

        outcome = gate.validate_file(path)
        _raise_if_fatal(outcome, "file", path, side_log)
        if outcome.status == IGNORED:
            ignored.append(str(path))

        reconciler.fold_unit_metadata(unit.get(METADATA_KEY))
        reconciler.fold_external_timestamp(timestamp_oracle(path))
        merger.merge_unit(unit)
        logger.debug(f"Merged {root}/{path.name}")

    metadata = reconciler.finalize(previous, now)
    bundle = Bundle(metadata=metadata, content=merger.content)

    staged = stage_bundle(bundle, output_path)
    try:
        outcome = gate.validate_bundle(staged)
        _raise_if_fatal(outcome, "bundle", output_path, side_log)
        if outcome.status == IGNORED:
            ignored.append(str(output_path))
        commit_staged(staged, output_path)
    finally:
        discard_staged(staged)

    logger.info(f"Bundle written to: {output_path}")
    logger.info(
        f"metadata: edition={metadata.edition}, dateAdded={metadata.date_added}, "
        f"dateLastModified={metadata.date_last_modified}"
    )

    return BuildResult(
        bundle=bundle,
        output_path=output_path,
        files_processed=len(files),
        ignored=ignored,
    )
