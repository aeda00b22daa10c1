"""
Homebrew bundle builder.

Merges JSON content files from category directories into one bundle with
reconciled metadata, gated by an external schema validator.

Modules:
    models - Bundle, metadata and validation outcome types
    errors - Fatal error taxonomy
    loader - Content file discovery and parsing
    validation - Ignore patterns, validator oracle and validation gate
    metadata - Source dedup and metadata reconciliation
    merger - Whitelisted content concatenation
    writer - Previous-bundle metadata and bundle output
    timestamps - Git / filesystem last-modified times
    config - Layered YAML / env / CLI configuration
    pipeline - End-to-end build
    cli - Command-line interface entrypoints
"""

from . import models
from . import errors
from . import loader
from . import validation
from . import metadata
from . import merger
from . import writer
from . import timestamps
from . import config
from . import pipeline
from . import cli

__version__ = "1.0.0"
