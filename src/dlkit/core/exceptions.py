"""
Core Exception Hierarchy for dlkit

Provides error classification with error codes, recovery suggestions,
and context information for templates, paths and header resolution.
"""

import sys
import time
import traceback
import uuid
from enum import Enum
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field


class ErrorCode(Enum):
    """Standard error codes for different error categories."""

    # Network related errors (1000-1999)
    NETWORK_CONNECTION_FAILED = 1001
    NETWORK_TIMEOUT = 1002

    # Configuration errors (3000-3999)
    CONFIG_INVALID_FORMAT = 3001
    CONFIG_INVALID_VALUE = 3003
    CONFIG_FILE_NOT_FOUND = 3004

    # Validation errors (5000-5999)
    VALIDATION_INVALID_INPUT = 5001
    VALIDATION_FORMAT_ERROR = 5005

    # Generic/unknown errors (9000-9999)
    UNKNOWN_ERROR = 9000


@dataclass
class ErrorContext:
    """Contextual information about an error occurrence."""

    operation: str = ""
    url: Optional[str] = None
    file_path: Optional[str] = None
    template: Optional[str] = None
    correlation_id: Optional[str] = None
    timestamp: float = field(default_factory=time.time)
    system_info: Dict[str, Any] = field(default_factory=dict)
    user_context: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert context to dictionary for serialization."""
        return {
            'operation': self.operation,
            'url': self.url,
            'file_path': self.file_path,
            'template': self.template,
            'correlation_id': self.correlation_id,
            'timestamp': self.timestamp,
            'system_info': self.system_info,
            'user_context': self.user_context
        }


@dataclass
class RecoverySuggestion:
    """Structured recovery suggestion for error resolution."""

    action: str  # Brief action description
    description: str  # Detailed explanation
    automatic: bool = False
    command: Optional[str] = None
    priority: int = 1  # 1=highest

    def to_dict(self) -> Dict[str, Any]:
        """Convert suggestion to dictionary."""
        return {
            'action': self.action,
            'description': self.description,
            'automatic': self.automatic,
            'command': self.command,
            'priority': self.priority
        }


class DLKitError(Exception):
    """
    Base exception for all dlkit errors.

    Carries an error code, recovery suggestions and context so the CLI can
    print a useful message and debug tooling can dump the details.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None,
        recoverable: bool = True,
        suggestions: Optional[List[RecoverySuggestion]] = None
    ):
        """
        Initialize dlkit error.

        Args:
            message: Human-readable error description
            error_code: Standardized error code
            context: Contextual information about the error
            cause: Original exception that caused this error
            recoverable: Whether the error can potentially be recovered
            suggestions: List of recovery suggestions
        """
        super().__init__(message)

        self.message = message
        self.error_code = error_code
        self.context = context or ErrorContext()
        self.cause = cause
        self.recoverable = recoverable
        self.suggestions = suggestions or []
        self.stack_trace = traceback.format_exc()

        if not self.context.correlation_id:
            self.context.correlation_id = str(uuid.uuid4())[:8]

        if not self.context.system_info:
            self.context.system_info = {
                'platform': sys.platform,
                'python_version': sys.version,
            }

    def add_suggestion(self, suggestion: RecoverySuggestion) -> None:
        """Add a recovery suggestion to the error."""
        self.suggestions.append(suggestion)
        self.suggestions.sort(key=lambda s: s.priority)

    def get_user_message(self) -> str:
        """Get user-friendly error message with suggestions."""
        lines = [f"Error: {self.message}"]

        if self.error_code != ErrorCode.UNKNOWN_ERROR:
            lines.append(f"Error Code: {self.error_code.value}")

        if self.context.correlation_id:
            lines.append(f"Correlation ID: {self.context.correlation_id}")

        if self.suggestions:
            lines.append("\nSuggested solutions:")
            for i, suggestion in enumerate(self.suggestions[:3], 1):
                lines.append(f"  {i}. {suggestion.action}")
                lines.append(f"     {suggestion.description}")
                if suggestion.command:
                    lines.append(f"     Command: {suggestion.command}")

        return "\n".join(lines)

    def get_debug_info(self) -> Dict[str, Any]:
        """Get comprehensive debug information."""
        return {
            'error_type': self.__class__.__name__,
            'message': self.message,
            'error_code': self.error_code.value,
            'recoverable': self.recoverable,
            'context': self.context.to_dict(),
            'cause': {
                'type': type(self.cause).__name__ if self.cause else None,
                'message': str(self.cause) if self.cause else None
            },
            'suggestions': [s.to_dict() for s in self.suggestions],
            'stack_trace': self.stack_trace
        }


class NetworkError(DLKitError):
    """Exception for network-related errors."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.NETWORK_CONNECTION_FAILED,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs
    ):
        context = kwargs.get('context') or ErrorContext()
        if url:
            context.url = url
            context.user_context['status_code'] = status_code

        kwargs['context'] = context
        kwargs['error_code'] = error_code

        super().__init__(message, **kwargs)

        if error_code == ErrorCode.NETWORK_CONNECTION_FAILED:
            self.add_suggestion(RecoverySuggestion(
                action="Check internet connection",
                description="Verify the URL is reachable and try again.",
                automatic=False,
                priority=1
            ))
        elif error_code == ErrorCode.NETWORK_TIMEOUT:
            self.add_suggestion(RecoverySuggestion(
                action="Increase the timeout",
                description="The server was slow to answer the HEAD request.",
                command="DLKIT_TIMEOUT=60 dlkit resolve <url>",
                automatic=False,
                priority=1
            ))


class HeaderFetchError(NetworkError):
    """
    Raised by a header source when the headers of a URL cannot be fetched.

    ``status`` and ``status_text`` mirror what the transport reported; a
    status of 0 means no HTTP response was received at all.
    """

    def __init__(
        self,
        status: int,
        status_text: str = "",
        url: Optional[str] = None,
        **kwargs
    ):
        self.status = status
        self.status_text = status_text
        message = f"Failed to fetch headers (status {status})"
        if status_text:
            message = f"{message}: {status_text}"
        kwargs.setdefault('error_code', ErrorCode.NETWORK_CONNECTION_FAILED)
        super().__init__(message, url=url, status_code=status, **kwargs)


class ConfigurationError(DLKitError):
    """Exception for configuration-related errors."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.CONFIG_INVALID_FORMAT,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        **kwargs
    ):
        context = kwargs.get('context') or ErrorContext()
        if config_key:
            context.user_context['config_key'] = config_key
            context.user_context['config_value'] = config_value

        kwargs['context'] = context
        kwargs['error_code'] = error_code

        super().__init__(message, **kwargs)

        if error_code == ErrorCode.CONFIG_FILE_NOT_FOUND:
            self.add_suggestion(RecoverySuggestion(
                action="Check the configuration path",
                description="Pass an existing YAML or JSON file with --config.",
                automatic=False,
                priority=1
            ))
        elif error_code == ErrorCode.CONFIG_INVALID_VALUE:
            self.add_suggestion(RecoverySuggestion(
                action="Check configuration values",
                description="Review the configuration file and DLKIT_* environment variables.",
                automatic=False,
                priority=1
            ))


class ValidationError(DLKitError):
    """Exception for input validation errors."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.VALIDATION_INVALID_INPUT,
        field_name: Optional[str] = None,
        field_value: Optional[Any] = None,
        **kwargs
    ):
        context = kwargs.get('context') or ErrorContext()
        if field_name:
            context.user_context['field_name'] = field_name
            context.user_context['field_value'] = field_value

        kwargs['context'] = context
        kwargs['error_code'] = error_code

        super().__init__(message, **kwargs)


class TemplateError(ValidationError):
    """Exception for malformed template placeholders."""

    def __init__(self, message: str, template: Optional[str] = None, **kwargs):
        context = kwargs.get('context') or ErrorContext()
        if template is not None:
            context.template = template
        kwargs['context'] = context
        kwargs.setdefault('error_code', ErrorCode.VALIDATION_FORMAT_ERROR)
        super().__init__(message, **kwargs)
