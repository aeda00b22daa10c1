"""
Validation gate around the external schema validator.

Modes:
    full    - any validator failure is fatal; a missing validator is fatal
    relaxed - failures matching a known-ignorable or configured pattern are
              downgraded to IGNORED; a missing validator is a warning
    off     - the validator is never invoked

The validator itself is an injected oracle (``run(path) -> OracleResult``),
by default the ``test-json-brew`` executable run as a subprocess.
"""

from __future__ import annotations

import logging
import os
import re
import shutil
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Pattern

from .errors import ConfigError, ValidatorUnavailableError
from .models import (
    CAUSE_VALIDATOR_UNAVAILABLE,
    OracleResult,
    ValidationOutcome,
)

logger = logging.getLogger(__name__)


MODE_FULL = "full"
MODE_RELAXED = "relaxed"
MODE_OFF = "off"
VALIDATION_MODES = (MODE_FULL, MODE_RELAXED, MODE_OFF)

VALIDATOR_NAME = "test-json-brew"
DEFAULT_SIDE_LOG = Path("/tmp/bundle-validate.log")

# Separators for the extra ignore-pattern string: "a ;; b || c"
_PATTERN_SPLIT = re.compile(r"\s*;;\s*|\s*\|\|\s*")
_DELIMITED_REGEX = re.compile(r"^/(.+)/([gimsuyx]*)$", re.DOTALL)

_REGEX_FLAGS = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "x": re.VERBOSE,
    # Accepted for compatibility with /body/flags written for JS tooling
    "g": 0,
    "u": 0,
}
_ANCHOR_FLAG = "y"


@dataclass
class IgnoreRule:
    """One parsed ignore pattern: kind is "literal" or "regex"."""
    kind: str
    source: str
    pattern: Pattern[str]
    anchored: bool = False

    def matches(self, text: str) -> bool:
        if self.anchored:
            return self.pattern.match(text) is not None
        return self.pattern.search(text) is not None

    def describe(self) -> str:
        return f"{self.kind}:{self.source}"


def _compile_delimited(token: str, body: str, flags: str) -> IgnoreRule:
    re_flags = 0
    anchored = False
    for ch in flags:
        if ch == _ANCHOR_FLAG:
            anchored = True
        else:
            re_flags |= _REGEX_FLAGS[ch]

    try:
        compiled = re.compile(body, re_flags)
    except re.error as e:
        raise ConfigError(f"Invalid regex in ignore pattern {token}: {e}") from e

    return IgnoreRule(kind="regex", source=token, pattern=compiled, anchored=anchored)


def parse_ignore_patterns(text: Optional[str]) -> List[IgnoreRule]:
    """
    Parse the extra ignore-pattern configuration string.

    Tokens are separated by ``;;`` or ``||``. A token of the form
    ``/body/flags`` (flags drawn from ``gimsuyx``) is a regular expression;
    anything else, including paths such as ``/_meta/sources/0/json``, is
    matched as a case-insensitive literal substring.

    Args:
        text: Raw configuration string (may be empty or None)

    Returns:
        List of IgnoreRule in configuration order

    Raises:
        ConfigError: If a regex token does not compile
    """
    if not text:
        return []

    rules: List[IgnoreRule] = []
    for token in _PATTERN_SPLIT.split(text.strip()):
        token = token.strip()
        if not token:
            continue

        m = _DELIMITED_REGEX.match(token)
        if m:
            rules.append(_compile_delimited(token, m.group(1), m.group(2)))
        else:
            rules.append(IgnoreRule(
                kind="literal",
                source=token,
                pattern=re.compile(re.escape(token), re.IGNORECASE),
            ))

    return rules


# Known-ignorable: a source-list entry failing the enum check on its identifier.
# Structured form, when the validator prints ajv-style JSON errors.
_SOURCE_ENUM_INSTANCE = re.compile(
    r'"instancePath"\s*:\s*"/(?:_meta|metadata)/sources/\d+/(?:json|id)"'
)
_SOURCE_ENUM_SCHEMA = re.compile(
    r'"schemaPath"\s*:\s*"[^"]*sources-homebrew[^"]*/(?:sourcesColon|sourcesShort)/enum"'
)
_SOURCE_ENUM_KEYWORD = re.compile(r'"keyword"\s*:\s*"enum"')
# Free-text form.
_SOURCE_PATH_TEXT = re.compile(r"/(?:_meta|metadata)/sources/.*/(?:json|id)")
_SOURCE_ENUM_TEXT = re.compile(r"\bsources(?:Short|Colon)/enum\b")


def is_known_ignorable(diagnostic: str) -> bool:
    """True if the diagnostic only reports a source-identifier enum violation."""
    structured = (
        _SOURCE_ENUM_INSTANCE.search(diagnostic) is not None
        and _SOURCE_ENUM_SCHEMA.search(diagnostic) is not None
        and _SOURCE_ENUM_KEYWORD.search(diagnostic) is not None
    )
    textual = (
        _SOURCE_PATH_TEXT.search(diagnostic) is not None
        and _SOURCE_ENUM_TEXT.search(diagnostic) is not None
    )
    return structured or textual


def match_ignore_reason(diagnostic: str, extra_rules: List[IgnoreRule]) -> Optional[str]:
    """
    Return why a diagnostic may be ignored, or None if it may not.

    Built-in patterns are checked before the configured ones.
    """
    if is_known_ignorable(diagnostic):
        return "known source enum violation"
    for rule in extra_rules:
        if rule.matches(diagnostic):
            return f"matched {rule.describe()}"
    return None


class DiagnosticLog:
    """Append-only side log for diagnostics kept out of the primary output."""

    def __init__(self, path: Path = DEFAULT_SIDE_LOG):
        self.path = Path(path)

    def append(self, tag: str, kind: str, target: str, text: str) -> None:
        """Append one ``[TAG][kind=target]`` block. Write errors only warn."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, 'a', encoding='utf-8') as f:
                f.write(f"\n[{tag}][{kind}={target}]\n{text}\n")
        except OSError as e:
            logger.warning(f"Could not write side log {self.path}: {e}")


def default_validator_bin(base_dir: Path) -> Path:
    """Locate the validator the way npm installs it under node_modules/.bin."""
    name = f"{VALIDATOR_NAME}.cmd" if sys.platform == "win32" else VALIDATOR_NAME
    return base_dir / "node_modules" / ".bin" / name


class SubprocessValidator:
    """Validator oracle backed by an external executable."""

    def __init__(self, bin_path: os.PathLike):
        self.bin_path = str(bin_path)

    def available(self) -> bool:
        if os.path.sep in self.bin_path or (os.path.altsep and os.path.altsep in self.bin_path):
            return os.path.exists(self.bin_path)
        return shutil.which(self.bin_path) is not None

    def run(self, path: Path) -> OracleResult:
        """
        Run the validator on one file.

        Raises:
            ValidatorUnavailableError: If the executable cannot be launched
        """
        try:
            result = subprocess.run(
                [self.bin_path, str(path)],
                stdin=subprocess.DEVNULL,
                capture_output=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as e:
            raise ValidatorUnavailableError(f"Cannot run validator {self.bin_path}: {e}") from e

        diagnostic = f"{result.stdout or ''}\n{result.stderr or ''}"
        return OracleResult(passed=result.returncode == 0, diagnostic=diagnostic)


class ValidationGate:
    """Classify validator results for content files and the final bundle."""

    def __init__(
        self,
        oracle,
        mode: str = MODE_FULL,
        ignore_rules: Optional[List[IgnoreRule]] = None,
        side_log: Optional[DiagnosticLog] = None,
    ):
        if mode not in VALIDATION_MODES:
            raise ConfigError(f"Unknown validation mode: {mode}. Must be one of {', '.join(VALIDATION_MODES)}")
        self.oracle = oracle
        self.mode = mode
        self.ignore_rules = ignore_rules or []
        self.side_log = side_log or DiagnosticLog()

    def validate_file(self, path: Path) -> ValidationOutcome:
        return self._validate(path, "file")

    def validate_bundle(self, path: Path) -> ValidationOutcome:
        return self._validate(path, "bundle")

    def _unavailable(self, kind: str, path: Path, message: str) -> ValidationOutcome:
        if self.mode == MODE_FULL:
            return ValidationOutcome.fatal(message, cause=CAUSE_VALIDATOR_UNAVAILABLE)
        logger.warning(f"[validate/{self.mode}] {message}; skipping {kind}: {path}")
        return ValidationOutcome.ok()

    def _validate(self, path: Path, kind: str) -> ValidationOutcome:
        if self.mode == MODE_OFF:
            logger.debug(f"[validate/off] skip {kind}: {path}")
            return ValidationOutcome.ok()

        if self.oracle is None or not self.oracle.available():
            bin_path = getattr(self.oracle, "bin_path", VALIDATOR_NAME)
            return self._unavailable(kind, path, f"validator not found: {bin_path}")

        try:
            result = self.oracle.run(path)
        except ValidatorUnavailableError as e:
            return self._unavailable(kind, path, str(e))

        if result.passed:
            return ValidationOutcome.ok()

        if self.mode == MODE_RELAXED:
            reason = match_ignore_reason(result.diagnostic, self.ignore_rules)
            if reason:
                self.side_log.append("IGNORED", kind, str(path), result.diagnostic)
                logger.warning(
                    f"[validate/relaxed] ignored known error on {kind}: {path} "
                    f"(details in {self.side_log.path})"
                )
                return ValidationOutcome.ignored(reason)

        return ValidationOutcome.fatal(result.diagnostic)
