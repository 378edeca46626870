#!/usr/bin/env python3
"""
Header based filename resolution for downloads.

This module infers the filename and extension of a download from the
``Content-Type`` and ``Content-Disposition`` headers of its URL. Fetching
the headers is delegated to a *header source*: an async callable
``(url, header_names) -> {name: value or None}``. RequestsHeaderSource is
the stock implementation, issuing a HEAD request with requests.
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Mapping, Optional, Sequence
from urllib.parse import unquote

import requests

from dlkit.core.config.models import HeaderConfig
from dlkit.core.exceptions import ErrorCode, HeaderFetchError
from dlkit.paths import file_ext, safe_filename


CONTENT_DISPOSITION = "Content-Disposition"
CONTENT_TYPE = "Content-Type"
HEADER_NAMES = (CONTENT_DISPOSITION, CONTENT_TYPE)

DEFAULT_MIME_OVERRIDES = {"jpeg": "jpg", "svg+xml": "svg"}

HeaderMap = Mapping[str, Optional[str]]
HeaderSource = Callable[[str, Sequence[str]], Awaitable[HeaderMap]]

# filename="quoted value" or filename=bare value, up to ';' or newline
_FILENAME_RE = re.compile(r"""filename[^;=\n]*=((['"]).*?\2|[^;\n]*)""")
# RFC 5987 extended value: filename*=charset'language'percent-encoded
_FILENAME_EXT_RE = re.compile(r"filename\*\s*=\s*([\w!#$%&+^`{}~-]*)'[\w-]*'([^;\s]+)")


def mime_extension(content_type: Optional[str], overrides: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """
    Map an ``image/*`` content type to a file extension.

    Args:
        content_type: Raw Content-Type header value
        overrides: Subtype to extension map, defaults to DEFAULT_MIME_OVERRIDES

    Returns:
        Extension with leading dot, or None for missing or non-image types

    Examples:
        >>> mime_extension("image/jpeg")
        '.jpg'
        >>> mime_extension("image/webp; q=0.9")
        '.webp'
        >>> mime_extension("text/html") is None
        True
    """
    if not content_type or not content_type.startswith("image/"):
        return None

    subtype = content_type[len("image/"):].split(';', 1)[0].strip().lower()
    if not subtype:
        return None

    if overrides is None:
        overrides = DEFAULT_MIME_OVERRIDES
    return f".{overrides.get(subtype, subtype)}"


def _decode_ext_value(charset: str, value: str) -> str:
    try:
        return unquote(value, encoding=charset or 'utf-8', errors='replace')
    except LookupError:
        return unquote(value, errors='replace')


def disposition_filename(disposition: Optional[str]) -> Optional[str]:
    """
    Extract the filename parameter of a Content-Disposition header.

    An RFC 5987 ``filename*=`` parameter wins over a plain ``filename=``
    one. Quotes are stripped and the value is percent-decoded. No
    sanitization happens here.

    Examples:
        >>> disposition_filename('attachment; filename="cat.jpeg"')
        'cat.jpeg'
        >>> disposition_filename("attachment; filename*=UTF-8''n%C3%A4me.png")
        'näme.png'
        >>> disposition_filename("inline") is None
        True
    """
    if not disposition or 'filename' not in disposition:
        return None

    match = _FILENAME_EXT_RE.search(disposition)
    if match:
        name = _decode_ext_value(match.group(1), match.group(2).strip('"'))
    else:
        match = _FILENAME_RE.search(disposition)
        if not match or not match.group(1):
            return None
        name = unquote(re.sub(r"""['"]""", '', match.group(1)).strip())

    return name or None


@dataclass(frozen=True)
class FilenameGuess:
    """
    What the response headers of a URL say about its filename.

    Either field may be None; both are None when the headers carried
    nothing useful.
    """

    filename: Optional[str] = None
    mime_ext: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        """Only the fields that were produced, keyed ``filename``/``mimeExt``."""
        result = {}
        if self.mime_ext is not None:
            result['mimeExt'] = self.mime_ext
        if self.filename is not None:
            result['filename'] = self.filename
        return result

    @property
    def extension(self) -> Optional[str]:
        """Extension of the disposition filename, else the MIME extension."""
        if self.filename and file_ext(self.filename):
            return file_ext(self.filename)
        return self.mime_ext

    def suggest(self, fallback: str = "", replacement: str = "_") -> str:
        """
        Build a filesystem-safe filename from the guess.

        Args:
            fallback: Name to use when no disposition filename was found
            replacement: String substituted for each invalid character

        Returns:
            Sanitized filename with the MIME extension appended if it lacks one
        """
        return safe_filename(self.filename or fallback, self.mime_ext, replacement)


class FilenameResolver:
    """
    Infers a download's filename and extension from its response headers.

    The resolver performs no I/O itself; it awaits the header source once per
    call and never retries. Errors raised by the header source reach the
    caller untouched.
    """

    def __init__(
        self,
        header_source: Optional[HeaderSource] = None,
        mime_overrides: Optional[Mapping[str, str]] = None
    ):
        """
        Initialize the resolver.

        Args:
            header_source: Default async header source used by ``resolve``
            mime_overrides: Image subtype to extension overrides
        """
        self.header_source = header_source
        self.mime_overrides = dict(DEFAULT_MIME_OVERRIDES if mime_overrides is None else mime_overrides)
        self.logger = logging.getLogger(__name__)

    @classmethod
    def from_config(cls, config: HeaderConfig, header_source: Optional[HeaderSource] = None) -> "FilenameResolver":
        """Build a resolver backed by a RequestsHeaderSource unless a source is given."""
        if header_source is None:
            header_source = RequestsHeaderSource.from_config(config)
        return cls(header_source, config.mime_overrides)

    async def resolve(self, url: str, header_source: Optional[HeaderSource] = None) -> FilenameGuess:
        """
        Resolve the filename guess for a URL.

        Args:
            url: URL of the download
            header_source: Overrides the resolver's own header source

        Returns:
            FilenameGuess with whatever the headers provided

        Raises:
            ValueError: If no header source is available
            HeaderFetchError: Propagated unchanged from the header source
        """
        source = header_source or self.header_source
        if source is None:
            raise ValueError("No header source configured")

        headers = await source(url, list(HEADER_NAMES))

        content_type = headers.get(CONTENT_TYPE)
        mime_ext = mime_extension(content_type, self.mime_overrides)

        disposition = headers.get(CONTENT_DISPOSITION)
        name = disposition_filename(disposition)
        if disposition and name is None:
            self.logger.warning(f"No usable filename in Content-Disposition for {url}: {disposition!r}")

        guess = FilenameGuess(filename=name, mime_ext=mime_ext)
        self.logger.debug(f"Resolved {url} -> {guess.to_dict()}")
        return guess


async def resolve_filename(url: str, header_source: HeaderSource) -> FilenameGuess:
    """Resolve the filename guess for ``url`` using ``header_source``."""
    return await FilenameResolver(header_source).resolve(url)


class RequestsHeaderSource:
    """
    Header source that issues a HEAD request with requests.

    The blocking request runs in the event loop's default executor. HTTP
    error statuses are not failures: their headers are returned like any
    other. Only transport errors raise HeaderFetchError, with status 0.
    """

    def __init__(
        self,
        timeout: float = 30,
        user_agent: str = "dlkit/0.3 (header probe)",
        allow_redirects: bool = True,
        session: Optional[requests.Session] = None
    ):
        self.timeout = timeout
        self.user_agent = user_agent
        self.allow_redirects = allow_redirects
        self.session = session or requests.Session()
        self.logger = logging.getLogger(__name__)

    @classmethod
    def from_config(cls, config: HeaderConfig, session: Optional[requests.Session] = None) -> "RequestsHeaderSource":
        return cls(
            timeout=config.timeout,
            user_agent=config.user_agent,
            allow_redirects=config.allow_redirects,
            session=session
        )

    def close(self) -> None:
        """Close the underlying requests session."""
        self.session.close()

    def __enter__(self) -> "RequestsHeaderSource":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    async def __call__(self, url: str, header_names: Sequence[str]) -> Dict[str, Optional[str]]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.fetch, url, list(header_names))

    def fetch(self, url: str, header_names: Sequence[str]) -> Dict[str, Optional[str]]:
        """
        Fetch the requested headers of a URL synchronously.

        Raises:
            HeaderFetchError: On connection failures and timeouts
        """
        try:
            response = self.session.head(
                url,
                headers={'User-Agent': self.user_agent},
                timeout=self.timeout,
                allow_redirects=self.allow_redirects
            )
        except requests.Timeout as e:
            raise HeaderFetchError(
                0, str(e), url=url, error_code=ErrorCode.NETWORK_TIMEOUT, cause=e
            ) from e
        except requests.RequestException as e:
            raise HeaderFetchError(0, str(e), url=url, cause=e) from e

        self.logger.debug(f"HEAD {url} -> {response.status_code}")
        return {name: response.headers.get(name) for name in header_names}
