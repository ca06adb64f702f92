"""Root logger setup for the ``gwaln`` command.

Console output always goes to stderr so ``--json`` output on stdout stays
parseable. A log file is added only when ``GWALN_LOG_DIR`` (or an explicit
``log_dir``) names a directory. Repeated calls leave existing handlers alone.
"""

import logging
import os
from typing import Optional


LOG_DIR_ENV = "GWALN_LOG_DIR"
LOG_FILE = "gwaln.log"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Retry chatter from the verifier sessions
NOISY_LOGGERS = ("urllib3",)


def configure_logging(verbose: bool = False, log_dir: Optional[str] = None) -> None:
    root = logging.getLogger()
    if root.handlers:
        return

    formatter = logging.Formatter(LOG_FORMAT)
    handlers = [logging.StreamHandler()]

    file_error = None
    log_dir = log_dir or os.environ.get(LOG_DIR_ENV)
    if log_dir:
        try:
            os.makedirs(log_dir, exist_ok=True)
            handlers.append(logging.FileHandler(os.path.join(log_dir, LOG_FILE), mode="a", encoding="utf-8"))
        except OSError as e:
            # reported once the console handler is attached
            file_error = e

    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.INFO)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if verbose else logging.WARNING)

    if file_error is not None:
        logging.getLogger(__name__).warning(f"File logging disabled, cannot use {log_dir}: {file_error}")
