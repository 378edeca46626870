"""
dlkit - naming toolkit for downloads.

Template expansion with fallbacks and zero padding, path and filename
sanitization, and filename inference from HTTP response headers.
"""

from dlkit.paths import (
    basename,
    filename,
    file_part,
    file_ext,
    split_ext,
    dirname,
    sanitize_filename,
    sanitize_path,
    path_join,
    is_valid_path,
    is_valid_filename,
    safe_filename,
)
from dlkit.core.templates import TemplateEngine, VariableTable, expand
from dlkit.headers import (
    FilenameGuess,
    FilenameResolver,
    RequestsHeaderSource,
    resolve_filename,
)

__version__ = "0.3.0"

__all__ = [
    'basename',
    'filename',
    'file_part',
    'file_ext',
    'split_ext',
    'dirname',
    'sanitize_filename',
    'sanitize_path',
    'path_join',
    'is_valid_path',
    'is_valid_filename',
    'safe_filename',
    'TemplateEngine',
    'VariableTable',
    'expand',
    'FilenameGuess',
    'FilenameResolver',
    'RequestsHeaderSource',
    'resolve_filename',
]
