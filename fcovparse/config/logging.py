"""Centralized logging configuration for fcovparse."""

import logging
import os
import sys


class TqdmLoggingHandler(logging.Handler):
    """Logging handler that writes through tqdm so progress bars stay intact."""

    def emit(self, record):
        try:
            from tqdm import tqdm
            msg = self.format(record)
            tqdm.write(msg, file=sys.stderr)
        except Exception:
            self.handleError(record)


def setup_logging() -> logging.Logger:
    """Configure and return the root logger for fcovparse.

    Returns:
        Configured logger instance
    """
    # FCOVPARSE_DEBUG switches the whole package to DEBUG
    debug_enabled = os.getenv("FCOVPARSE_DEBUG", "").lower() in ("1", "true", "yes")
    log_level = logging.DEBUG if debug_enabled else logging.INFO

    logger = logging.getLogger("fcovparse")
    logger.setLevel(log_level)

    # Re-running setup must not stack handlers
    logger.handlers.clear()

    handler = TqdmLoggingHandler()
    handler.setLevel(log_level)
    formatter = logging.Formatter('[%(levelname)s] %(message)s')
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    # pytest caplog needs propagation
    logger.propagate = True

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a specific module.

    Args:
        name: Module name (typically __name__)

    Returns:
        Logger instance
    """
    if name == "fcovparse" or name.startswith("fcovparse."):
        return logging.getLogger(name)
    return logging.getLogger(f"fcovparse.{name}")


_root_logger = setup_logging()
