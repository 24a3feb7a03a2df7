"""Logging configuration for the exam academy."""
import logging


def configure_logging(level: str = "WARNING") -> logging.Logger:
    """Configure basic logging and return the package logger."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    return logging.getLogger("exam_academy")
