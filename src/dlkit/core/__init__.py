"""
Core dlkit Package

Contains the template engine, configuration and error handling.
"""

from dlkit.core.exceptions import (
    DLKitError,
    NetworkError,
    HeaderFetchError,
    ConfigurationError,
    ValidationError,
    TemplateError,
    ErrorCode,
    ErrorContext,
    RecoverySuggestion
)

__all__ = [
    'DLKitError',
    'NetworkError',
    'HeaderFetchError',
    'ConfigurationError',
    'ValidationError',
    'TemplateError',
    'ErrorCode',
    'ErrorContext',
    'RecoverySuggestion',
]
