"""
Build configuration.

Values are layered, later layers winning:
    1. defaults in this module
    2. config/bundle.yaml (or --config), checked against
       config/schemas/bundle_config.schema.json
    3. environment (BUNDLE_VALIDATE, HOMEBREW_IGNORE_PATTERNS), including a
       .env file in the base directory
    4. explicit overrides (command-line flags)

Ignore patterns are parsed here so malformed configuration fails at startup.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import jsonschema
import yaml
from dotenv import load_dotenv

from .errors import ConfigError
from .validation import (
    DEFAULT_SIDE_LOG,
    MODE_FULL,
    VALIDATION_MODES,
    IgnoreRule,
    default_validator_bin,
    parse_ignore_patterns,
)

logger = logging.getLogger(__name__)


REPO_ROOT = Path(__file__).resolve().parent.parent.parent
SCHEMA_PATH = REPO_ROOT / "config" / "schemas" / "bundle_config.schema.json"
DEFAULT_CONFIG_NAME = Path("config") / "bundle.yaml"

DEFAULT_ROOTS = [
    "races",
    "classes",
    "subclasses",
    "backgrounds",
    "feats",
    "items",
    "spells",
    "optionalfeatures",
    "psionics",
    "monsters",
    "vehicles",
    "variantrules",
    "tables",
    "adventures",
    "books",
]
DEFAULT_OUTPUT = Path("dist") / "homebrew-bundle.json"

ENV_VALIDATE = "BUNDLE_VALIDATE"
ENV_IGNORE_PATTERNS = "HOMEBREW_IGNORE_PATTERNS"


@dataclass
class BundleConfig:
    base_dir: Path
    roots: List[str] = field(default_factory=lambda: list(DEFAULT_ROOTS))
    output_path: Path = DEFAULT_OUTPUT
    validate_mode: str = MODE_FULL
    ignore_patterns: str = ""
    ignore_rules: List[IgnoreRule] = field(default_factory=list)
    validator_bin: Optional[Path] = None
    side_log_path: Path = DEFAULT_SIDE_LOG

    def resolved_output(self) -> Path:
        return self.base_dir / self.output_path

    def resolved_validator_bin(self) -> Path:
        if self.validator_bin is None:
            return default_validator_bin(self.base_dir)
        return self.base_dir / self.validator_bin


def load_env_file(base_dir: Path) -> None:
    """Load base_dir/.env into the process environment if present."""
    env_path = base_dir / ".env"
    if env_path.exists():
        load_dotenv(env_path)


def load_config_file(path: Path, schema_path: Optional[Path] = SCHEMA_PATH) -> Dict[str, Any]:
    """
    Load and schema-check a YAML configuration file.

    Raises:
        ConfigError: If the file is not valid YAML or violates the schema
        OSError: If the file cannot be read
    """
    with open(path, 'r', encoding='utf-8') as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config {path} must be a mapping")

    if schema_path is not None and schema_path.exists():
        with open(schema_path, 'r', encoding='utf-8') as f:
            schema = json.load(f)
        try:
            jsonschema.validate(data, schema)
        except jsonschema.ValidationError as e:
            where = ".".join(str(p) for p in e.absolute_path) or "<root>"
            raise ConfigError(f"Config {path} invalid at {where}: {e.message}") from e
    else:
        logger.debug(f"Config schema not found at {schema_path}; skipping schema check")

    return data


def load_config(
    base_dir: Optional[Path] = None,
    config_path: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> BundleConfig:
    """
    Build the effective configuration.

    Args:
        base_dir: Directory containing the category roots (default: cwd)
        config_path: Explicit YAML config; must exist when given
        env: Environment mapping (default: os.environ)
        overrides: Highest-priority values; None entries are ignored.
            Keys: roots, output, validate, ignore_patterns, validator_bin, side_log

    Returns:
        BundleConfig with ignore rules already parsed

    Raises:
        ConfigError: On any invalid value
    """
    base_dir = Path(base_dir) if base_dir is not None else Path.cwd()
    env = os.environ if env is None else env

    values: Dict[str, Any] = {}

    if config_path is not None:
        config_path = Path(config_path)
        if not config_path.exists():
            raise ConfigError(f"Config file not found: {config_path}")
        values.update(load_config_file(config_path))
    elif (base_dir / DEFAULT_CONFIG_NAME).exists():
        values.update(load_config_file(base_dir / DEFAULT_CONFIG_NAME))

    if env.get(ENV_VALIDATE):
        values["validate"] = env[ENV_VALIDATE].strip()
    if env.get(ENV_IGNORE_PATTERNS):
        values["ignore_patterns"] = env[ENV_IGNORE_PATTERNS]

    for key, value in (overrides or {}).items():
        if value is not None:
            values[key] = value

    mode = values.get("validate", MODE_FULL)
    if mode not in VALIDATION_MODES:
        raise ConfigError(f"Unknown validation mode: {mode}. Must be one of {', '.join(VALIDATION_MODES)}")

    roots = values.get("roots", DEFAULT_ROOTS)
    if not isinstance(roots, list) or not all(isinstance(r, str) and r for r in roots):
        raise ConfigError("roots must be a list of directory names")

    ignore_patterns = values.get("ignore_patterns") or ""

    config = BundleConfig(
        base_dir=base_dir,
        roots=list(roots),
        output_path=Path(values.get("output", DEFAULT_OUTPUT)),
        validate_mode=mode,
        ignore_patterns=ignore_patterns,
        ignore_rules=parse_ignore_patterns(ignore_patterns),
        validator_bin=Path(values["validator_bin"]) if values.get("validator_bin") else None,
        side_log_path=Path(values.get("side_log", DEFAULT_SIDE_LOG)),
    )

    return config
