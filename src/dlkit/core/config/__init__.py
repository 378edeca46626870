"""
Configuration Management Package

Provides Pydantic-based configuration models and management for dlkit.
"""

from dlkit.core.config.models import AppConfig, TemplateConfig, PathConfig, HeaderConfig
from dlkit.core.config.manager import ConfigManager

__all__ = [
    "AppConfig",
    "TemplateConfig",
    "PathConfig",
    "HeaderConfig",
    "ConfigManager",
]
