"""Core configuration and utilities for PyCatalog."""

from pycatalog.core.config import settings
from pycatalog.core.logging import setup_logging

__all__ = ["settings", "setup_logging"]
