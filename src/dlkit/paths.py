#!/usr/bin/env python3
"""
Path and filename helpers for dlkit.

This module provides pure string functions for deriving names from
``/``-delimited paths and for sanitizing and validating paths before they
are used as download targets. None of the functions touch the filesystem.
"""

import re
from typing import Iterable, Optional, Tuple


# Characters that are never allowed in a path or filename
INVALID_PATH_CHARS = '*":<>|?'
SEPARATOR_CHARS = '/\\'

_INVALID_PATH_RE = re.compile(r'[*":<>|?]')
_INVALID_FILENAME_RE = re.compile(r'[*"/\\:<>|?]')
_SEPARATOR_RUN_RE = re.compile(r'[/\\]+')
_EXT_RE = re.compile(r'\.[^./]+\Z')


def basename(path: str) -> str:
    """
    Return the text after the last ``/`` of a path.

    Examples:
        >>> basename("images/2024/cat.jpg")
        'cat.jpg'
        >>> basename("cat.jpg")
        'cat.jpg'
    """
    return path[path.rfind('/') + 1:]


def filename(path: str) -> str:
    """
    Return the basename with any ``:tag`` suffix stripped.

    Some image hosts append a size or quality tag after a colon
    (``photo.jpg:large``). Only the basename is inspected, so colons in
    directory components are left alone.

    Examples:
        >>> filename("media/name.jpg:large")
        'name.jpg'
        >>> filename("a:b/c.png")
        'c.png'
    """
    name = basename(path)
    colon = name.find(':')
    if colon != -1:
        name = name[:colon]
    return name


def file_part(path: str) -> str:
    """
    Return the filename without its final extension.

    Everything from the last ``.`` onward is removed; a filename without a
    dot is returned unchanged.

    Examples:
        >>> file_part("archive.tar.gz")
        'archive.tar'
        >>> file_part("README")
        'README'
    """
    name = filename(path)
    dot = name.rfind('.')
    if dot == -1:
        return name
    return name[:dot]


def file_ext(path: str) -> str:
    """
    Return the final extension of the filename, dot included.

    Returns an empty string when the filename has no extension or ends with
    a bare dot.

    Examples:
        >>> file_ext("photo.JPG")
        '.JPG'
        >>> file_ext("photo.")
        ''
    """
    match = _EXT_RE.search(filename(path))
    if match:
        return match.group(0)
    return ""


def split_ext(path: str) -> Tuple[str, str]:
    """Return ``(file_part(path), file_ext(path))``."""
    return file_part(path), file_ext(path)


def dirname(path: str) -> str:
    """
    Return the text before the last ``/`` without leading slashes.

    Examples:
        >>> dirname("/images/2024/cat.jpg")
        'images/2024'
        >>> dirname("cat.jpg")
        ''
    """
    slash = path.rfind('/')
    if slash == -1:
        return ""
    return path[:slash].lstrip('/')


def sanitize_filename(name: str, replacement: str = "_") -> str:
    """
    Replace every character that is invalid in a filename.

    Each of ``* " / \\ : < > | ?`` is replaced with ``replacement``, so
    directory separators are flattened too.

    Args:
        name: The filename to sanitize
        replacement: String substituted for each invalid character

    Returns:
        str: The sanitized filename

    Examples:
        >>> sanitize_filename('a:b*c"d')
        'a_b_c_d'
        >>> sanitize_filename("dir/file?.txt", "-")
        'dir-file-.txt'
    """
    return _INVALID_FILENAME_RE.sub(lambda m: replacement, name)


def sanitize_path(path: str, replacement: str = "_") -> str:
    """
    Sanitize a relative path while keeping its directory structure.

    Invalid characters are replaced, runs of forward or back slashes become
    a single ``/``, and one leading and one trailing slash are removed.
    The result is stable under repeated application as long as
    ``replacement`` holds no separators or invalid characters.

    Examples:
        >>> sanitize_path("a//b\\\\\\\\c/")
        'a/b/c'
        >>> sanitize_path("/pics/what?.png")
        'pics/what_.png'
    """
    result = _INVALID_PATH_RE.sub(lambda m: replacement, path)
    result = _SEPARATOR_RUN_RE.sub('/', result)
    if result.startswith('/'):
        result = result[1:]
    if result.endswith('/'):
        result = result[:-1]
    return result


def path_join(parts: Iterable[str], sep: Optional[str] = "/") -> str:
    """
    Join path parts and collapse repeated separators.

    Examples:
        >>> path_join(["downloads/", "/2024", "cat.jpg"])
        'downloads/2024/cat.jpg'
        >>> path_join(["a", "b"], "::")
        'a::b'
    """
    separator = sep or "/"
    joined = separator.join(str(part) for part in parts)
    return re.sub(f"(?:{re.escape(separator)})+", lambda m: separator, joined)


def is_valid_path(path) -> bool:
    """
    Check whether a value can be used as a relative download path.

    A valid path is a non-empty string that does not start with ``.``,
    does not end with ``.`` or ``/`` and contains none of ``* " : < > | ?``.
    """
    return (
        isinstance(path, str)
        and len(path) > 0
        and not path.startswith('.')
        and not path.endswith(('.', '/'))
        and not _INVALID_PATH_RE.search(path)
    )


def is_valid_filename(path) -> bool:
    """Check that a path is valid and names a file with a stem and an extension."""
    return (
        is_valid_path(path)
        and len(file_part(path)) > 0
        and len(file_ext(path)) > 0
    )


def safe_filename(name: Optional[str], fallback_ext: Optional[str] = None, replacement: str = "_") -> str:
    """
    Turn a raw filename from a remote source into a usable filename.

    The name is sanitized; when it has no extension and ``fallback_ext`` is
    given (usually the MIME extension of a resolved download) it is appended.

    Args:
        name: Raw filename, possibly None
        fallback_ext: Extension to use when ``name`` has none, with or without dot
        replacement: String substituted for each invalid character

    Returns:
        str: Sanitized filename, or an empty string when nothing usable was given
    """
    result = sanitize_filename(name or "", replacement)
    if fallback_ext and not file_ext(result):
        ext = fallback_ext if fallback_ext.startswith('.') else f".{fallback_ext}"
        if result:
            result = f"{result}{ext}"
    return result
