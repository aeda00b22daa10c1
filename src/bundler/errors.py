"""
Error taxonomy for the bundle builder.

Every fatal condition other than plain filesystem errors (``OSError``)
is a ``BundleError`` so the CLI can report it uniformly.
"""

from typing import Optional


class BundleError(Exception):
    """Base class for fatal bundle build errors."""
    pass


class ConfigError(BundleError):
    """Raised when configuration is malformed (bad mode, bad ignore pattern, schema violation)."""
    pass


class MalformedInputError(BundleError):
    """Raised when a content file cannot be parsed as a JSON object."""

    def __init__(self, path: str, message: str):
        self.path = path
        self.message = message
        super().__init__(f"{path}: {message}")


class ValidatorUnavailableError(BundleError):
    """Raised when the external validator cannot be located in full mode."""
    pass


class ValidationFailedError(BundleError):
    """Raised when the external validator rejects a file or the final bundle."""

    def __init__(self, target: str, diagnostic: str, message: Optional[str] = None):
        self.target = target
        self.diagnostic = diagnostic
        super().__init__(message or f"Validation failed for: {target}")
