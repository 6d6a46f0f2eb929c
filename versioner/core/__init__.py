"""Versioner Core - Shared utilities and infrastructure.

Import specific functions from submodules:
    from versioner.core.config import ConfigManager
    from versioner.core import constants
    from versioner.core import logging
    from versioner.core import validators
"""

# Re-export main module references for convenience
from versioner.core import config, constants, logging, validators

__all__ = [
    "config",
    "constants",
    "logging",
    "validators",
]
