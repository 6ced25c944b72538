"""Configuration and logging for fcovparse."""

from .logging import setup_logging, get_logger, TqdmLoggingHandler
from .schemas import ParserSettings, ScoringWeights

__all__ = [
    "setup_logging",
    "get_logger",
    "TqdmLoggingHandler",
    "ParserSettings",
    "ScoringWeights",
]
