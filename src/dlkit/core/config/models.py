"""
Configuration Models

Pydantic models for type-safe configuration of the template engine,
path helpers and header-based filename resolution.
"""

from typing import Dict, Optional
from pydantic import BaseModel, Field, field_validator, ConfigDict

from dlkit.core.templates.engine import DEFAULT_PRESETS
from dlkit.paths import INVALID_PATH_CHARS, SEPARATOR_CHARS


class TemplateConfig(BaseModel):
    """Configuration for the placeholder template engine."""

    presets: Dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_PRESETS),
        description="Named template presets available via --preset"
    )

    @field_validator('presets')
    @classmethod
    def validate_presets(cls, v):
        """Preset names are looked up case-insensitively."""
        normalized = {}
        for name, template in v.items():
            if not template:
                raise ValueError(f"Preset '{name}' has an empty template")
            normalized[name.lower()] = template
        return normalized


class PathConfig(BaseModel):
    """Configuration for path and filename sanitization."""

    replacement: str = Field(
        default="_",
        description="String substituted for each invalid filename character"
    )
    separator: str = Field(
        default="/",
        min_length=1,
        description="Separator used when joining path parts"
    )

    @field_validator('replacement')
    @classmethod
    def validate_replacement(cls, v):
        """A replacement containing invalid characters would defeat sanitization."""
        bad = [c for c in v if c in INVALID_PATH_CHARS or c in SEPARATOR_CHARS]
        if bad:
            raise ValueError(f"Replacement contains forbidden characters: {''.join(bad)}")
        return v


class HeaderConfig(BaseModel):
    """Configuration for fetching response headers."""

    timeout: int = Field(
        default=30,
        ge=1,
        le=300,
        description="HEAD request timeout in seconds"
    )
    user_agent: str = Field(
        default="dlkit/0.3 (header probe)",
        description="User agent string for HEAD requests"
    )
    allow_redirects: bool = Field(
        default=True,
        description="Follow redirects when probing headers"
    )
    mime_overrides: Dict[str, str] = Field(
        default_factory=lambda: {"jpeg": "jpg", "svg+xml": "svg"},
        description="Image subtype to extension overrides"
    )

    @field_validator('mime_overrides')
    @classmethod
    def validate_mime_overrides(cls, v):
        """Subtypes are matched lower-cased and extensions stored without a leading dot."""
        return {subtype.lower(): ext.lstrip('.') for subtype, ext in v.items()}


class AppConfig(BaseModel):
    """Root application configuration model."""

    version: str = Field(default="0.3.0", description="Configuration version")

    templates: TemplateConfig = Field(default_factory=TemplateConfig, description="Template configuration")
    paths: PathConfig = Field(default_factory=PathConfig, description="Path configuration")
    headers: HeaderConfig = Field(default_factory=HeaderConfig, description="Header configuration")

    verbose: bool = Field(
        default=False,
        description="Enable verbose logging output"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode with detailed logging"
    )

    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
    )

    def get_log_level(self) -> str:
        """Logging level implied by the verbosity flags."""
        if self.debug:
            return "DEBUG"
        if self.verbose:
            return "INFO"
        return "WARNING"

    def get_preset(self, name: str) -> Optional[str]:
        """Look up a template preset by name."""
        return self.templates.presets.get(name.lower())
