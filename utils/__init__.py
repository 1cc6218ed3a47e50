"""Shared utilities: logging configuration and per-turn log context."""

from .logging_config import clear_turn, get_logger, setup_logging, start_turn

__all__ = ['clear_turn', 'get_logger', 'setup_logging', 'start_turn']
