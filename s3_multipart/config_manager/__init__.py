"""Uploader configuration management."""

from .config import ConfigManager
from .helpers import parse_bytes
from .uploader_config import UploaderConfig

__all__ = ["ConfigManager", "UploaderConfig", "parse_bytes"]
