"""
Custom exceptions for the nest refresher.

This module provides domain-specific exception classes for error handling
and debugging throughout the system.
"""

from .custom_exceptions import (
    NestBaseException,
    NestConfigurationError,
    NestValidationError,
    NestAuthenticationError,
    NestConnectionError,
    NestProcessingError,
)

__all__ = [
    "NestBaseException",
    "NestConfigurationError",
    "NestValidationError",
    "NestAuthenticationError",
    "NestConnectionError",
    "NestProcessingError",
]
