"""Utility functions and helpers."""

from openhqm_rm.utils.logging import setup_logging
from openhqm_rm.utils.metrics import metrics

__all__ = ["setup_logging", "metrics"]
