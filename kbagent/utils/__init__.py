"""
Utilities Module
================

Common utilities shared across the package:
- logger: Context-prefixed logging with levels and timers
- config: Centralized configuration management
"""

from kbagent.utils.logger import Logger, logger
from kbagent.utils.config import get_config, Config

__all__ = ["Logger", "logger", "get_config", "Config"]
