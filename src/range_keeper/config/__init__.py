"""Configuration system."""

from range_keeper.config.loader import load_config
from range_keeper.config.schema import AppConfig

__all__ = ["AppConfig", "load_config"]
