"""
Template processing for dlkit.

Provides the ``<...>`` placeholder engine used to build download paths.
"""

from .engine import (
    TemplateEngine,
    VariableTable,
    Placeholder,
    Alternative,
    DEFAULT_PRESETS,
    expand,
    parse,
)

__all__ = [
    'TemplateEngine',
    'VariableTable',
    'Placeholder',
    'Alternative',
    'DEFAULT_PRESETS',
    'expand',
    'parse',
]
