"""Shared logging configuration for the bundle builder.

Call ``configure_logging()`` once at any CLI entry point to ensure logs are emitted.
The function is idempotent: if the root logger already has handlers, it does nothing.
"""

import logging
import os

LOG_DIR = "logs"
LOG_FILE = "bundle.log"


def configure_logging(level: int = logging.INFO, log_dir: str = LOG_DIR) -> None:
    """Configure root logger with console + optional build log file.

    Only configures if the root logger has no handlers (idempotent).
    """
    root = logging.getLogger()
    if root.handlers:
        return

    fmt = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    formatter = logging.Formatter(fmt)

    # Console handler
    console = logging.StreamHandler()
    console.setFormatter(formatter)
    root.addHandler(console)

    # File handler (optional, skipped when the log directory can't be created)
    try:
        os.makedirs(log_dir, exist_ok=True)
        fh = logging.FileHandler(os.path.join(log_dir, LOG_FILE), mode="a")
        fh.setFormatter(formatter)
        root.addHandler(fh)
    except OSError:
        root.debug(f"File logging disabled: cannot create {log_dir}/")

    root.setLevel(level)
