"""Configuration module for resp-client."""

from .settings import Settings, settings

__all__ = ["Settings", "settings"]
