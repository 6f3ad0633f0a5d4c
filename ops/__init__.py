"""
Operations package for the Outbreak Case Maps

This package centralizes the operational tools:
- Configuration management
- The click CLI that renders the maps

The Config class is exposed at the package level for convenient imports:
    from ops import Config
"""

from .config_loader import Config

__all__ = ["Config"]
