# Core package initialization
# This file makes the core directory a Python package
# and allows importing core modules

from . import config, dates, exceptions, logging_config, pagination

__all__ = [
    "config",
    "dates",
    "exceptions",
    "logging_config",
    "pagination",
]
