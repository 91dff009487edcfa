"""
Custom exceptions for Orrery.

This module defines domain-specific exceptions used throughout the application
to provide clear error context and enable precise error handling.
"""


class OrreryError(Exception):
    """Base exception for all Orrery-specific errors."""
    pass


class ConfigurationError(OrreryError):
    """Raised when a body's configuration is outside the valid domain."""
    pass


class CatalogError(OrreryError):
    """Raised when a body catalog cannot be read or lacks required columns."""
    pass


class ConvergenceError(OrreryError):
    """Raised when Kepler's equation cannot be solved for a given (M, e) pair.

    The offending inputs are kept on the exception so callers can log them
    before skipping the update.
    """

    def __init__(self, message, mean_anomaly=None, eccentricity=None):
        super().__init__(message)
        self.mean_anomaly = mean_anomaly
        self.eccentricity = eccentricity


class DegenerateThresholdError(OrreryError):
    """Raised when interpolation thresholds collapse to a single value."""
    pass


__all__ = [
    'OrreryError',
    'ConfigurationError',
    'CatalogError',
    'ConvergenceError',
    'DegenerateThresholdError'
]
