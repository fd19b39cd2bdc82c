"""Configuration module."""

from openhqm_rm.config.settings import Settings, settings

__all__ = ["Settings", "settings"]
