"""Custom exceptions for the OpenHQM router manager."""


class RouteManagerError(Exception):
    """Base exception for the OpenHQM router manager."""

    pass


class ConfigurationError(RouteManagerError):
    """Exception raised for invalid rule set or application configuration."""

    pass


class TransformError(RouteManagerError):
    """Exception raised when a JQ expression fails to compile or run."""

    pass


class TransformTimeoutError(TransformError):
    """Exception raised when a JQ expression exceeds its execution budget."""

    pass


class StorageError(RouteManagerError):
    """Exception raised for rule persistence errors."""

    pass
