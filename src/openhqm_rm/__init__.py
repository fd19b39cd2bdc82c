"""
OpenHQM Router Manager

Routing rule matching, JQ transformation and simulation for OpenHQM message routes.
"""

__version__ = "2.0.0"
__author__ = "OpenHQM Team"
__all__ = ["config", "expressions", "routing", "simulation", "storage", "utils"]
