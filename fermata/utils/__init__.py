"""
Utilities for Fermata
"""

from .logging_config import (
    FermataLogger,
    setup_logging,
    get_logger,
    log_performance,
    log_error,
    set_request_context,
)

__all__ = [
    'FermataLogger',
    'setup_logging',
    'get_logger',
    'log_performance',
    'log_error',
    'set_request_context',
]
