"""Configuration package for the PAYKU gateway proxy."""
from .settings import get_settings, Settings

__all__ = ["Settings", "get_settings"]
