"""Custom exceptions used across hypoflow."""


class HypoflowError(Exception):
    """Base error for the application."""


class ConfigError(HypoflowError):
    """Configuration related error."""
