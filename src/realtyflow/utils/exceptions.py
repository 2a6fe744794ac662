"""Custom exceptions for RealtyFlow."""


class RealtyFlowError(Exception):
    """Base exception for all RealtyFlow errors."""

    pass


class ConfigurationError(RealtyFlowError):
    """Error in configuration or settings."""

    pass
