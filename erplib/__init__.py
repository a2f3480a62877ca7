# ERP Gateway - shared library
"""
Configuration and observability shared by the API and engine packages.
"""

from .config import ConfigError, Settings

__all__ = ["ConfigError", "Settings"]
