#!/usr/bin/env python3
"""
Tests for header based filename resolution.

Covers MIME type mapping, Content-Disposition parsing, the
FilenameResolver with fake header sources, and RequestsHeaderSource with
a mocked requests session.
"""

from unittest.mock import Mock

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from dlkit.core.config.models import HeaderConfig
from dlkit.core.exceptions import ErrorCode, HeaderFetchError
from dlkit.headers import (
    CONTENT_DISPOSITION, CONTENT_TYPE, HEADER_NAMES,
    FilenameGuess, FilenameResolver, RequestsHeaderSource,
    disposition_filename, mime_extension, resolve_filename,
)


class TestMimeExtension:
    """Test cases for mime_extension."""

    def test_overrides(self):
        """Test the jpeg and svg+xml overrides."""
        assert mime_extension("image/jpeg") == ".jpg"
        assert mime_extension("image/svg+xml") == ".svg"

    def test_pass_through(self):
        """Test other image subtypes pass through unchanged."""
        assert mime_extension("image/png") == ".png"
        assert mime_extension("image/webp") == ".webp"
        assert mime_extension("image/x-icon") == ".x-icon"

    def test_parameters_dropped(self):
        """Test media type parameters are not part of the extension."""
        assert mime_extension("image/jpeg; charset=binary") == ".jpg"

    def test_non_image(self):
        """Test non-image and missing types give no extension."""
        assert mime_extension("text/html") is None
        assert mime_extension("video/mp4") is None
        assert mime_extension("") is None
        assert mime_extension(None) is None
        assert mime_extension("image/") is None

    def test_custom_overrides(self):
        """Test a custom override table replaces the default one."""
        assert mime_extension("image/jpeg", {"png": "PNG"}) == ".jpeg"
        assert mime_extension("image/png", {"png": "PNG"}) == ".PNG"


class TestDispositionFilename:
    """Test cases for disposition_filename."""

    def test_quoted(self):
        """Test a double quoted filename."""
        assert disposition_filename('attachment; filename="cat.jpeg"') == "cat.jpeg"

    def test_single_quoted(self):
        """Test a single quoted filename."""
        assert disposition_filename("attachment; filename='cat.jpeg'") == "cat.jpeg"

    def test_unquoted(self):
        """Test an unquoted filename ends at the next semicolon."""
        assert disposition_filename("attachment; filename=cat.jpg; size=10") == "cat.jpg"

    def test_percent_decoded(self):
        """Test the filename is percent-decoded."""
        assert disposition_filename('inline; filename="my%20cat.png"') == "my cat.png"

    def test_reserved_escapes_decoded(self):
        """Test reserved escapes are decoded too; sanitizing happens later."""
        assert disposition_filename("attachment; filename=a%2Fb%3Bc.png") == "a/b;c.png"
        assert FilenameGuess(disposition_filename("attachment; filename=a%2Fb.png")).suggest() == "a_b.png"

    def test_quoted_with_semicolon(self):
        """Test a quoted value may contain a semicolon."""
        assert disposition_filename('attachment; filename="a;b.txt"') == "a;b.txt"

    def test_extended_value_wins(self):
        """Test an RFC 5987 filename* parameter takes priority."""
        header = "attachment; filename=\"fallback.png\"; filename*=UTF-8''n%C3%A4me.png"
        assert disposition_filename(header) == "näme.png"

    def test_extended_value_latin1(self):
        """Test the declared charset is used for decoding."""
        assert disposition_filename("attachment; filename*=iso-8859-1''caf%E9.txt") == "café.txt"

    def test_extended_value_unknown_charset(self):
        """Test an unknown charset falls back to UTF-8."""
        assert disposition_filename("attachment; filename*=bogus''a%20b.txt") == "a b.txt"

    def test_no_filename(self):
        """Test headers without a usable filename give None."""
        assert disposition_filename("inline") is None
        assert disposition_filename("attachment; filename=") is None
        assert disposition_filename('attachment; filename=""') is None
        assert disposition_filename("") is None
        assert disposition_filename(None) is None

    def test_not_sanitized(self):
        """Test unsafe characters are returned as sent."""
        assert disposition_filename('attachment; filename="../etc/pass?wd"') == "../etc/pass?wd"


class TestFilenameGuess:
    """Test cases for FilenameGuess."""

    def test_to_dict_only_produced_fields(self):
        """Test absent fields are left out of to_dict."""
        assert FilenameGuess().to_dict() == {}
        assert FilenameGuess(mime_ext=".png").to_dict() == {"mimeExt": ".png"}
        assert FilenameGuess("a.jpg", ".jpg").to_dict() == {"filename": "a.jpg", "mimeExt": ".jpg"}

    def test_immutable(self):
        """Test guesses cannot be modified."""
        guess = FilenameGuess("a.jpg")
        with pytest.raises(AttributeError):
            guess.filename = "b.jpg"

    def test_extension(self):
        """Test the filename extension is preferred over the MIME extension."""
        assert FilenameGuess("cat.jpeg", ".jpg").extension == ".jpeg"
        assert FilenameGuess("cat", ".jpg").extension == ".jpg"
        assert FilenameGuess().extension is None

    def test_suggest(self):
        """Test suggest sanitizes and fills in the extension."""
        assert FilenameGuess("what?.png").suggest() == "what_.png"
        assert FilenameGuess(None, ".png").suggest("download") == "download.png"
        assert FilenameGuess("a:b", ".gif").suggest(replacement="-") == "a-b.gif"


class TestFilenameResolver:
    """Test cases for FilenameResolver."""

    @pytest.mark.asyncio
    async def test_image_with_disposition(self, header_source_factory):
        """Test both fields are produced from a typical image response."""
        source = header_source_factory({
            CONTENT_TYPE: "image/jpeg",
            CONTENT_DISPOSITION: 'attachment; filename="cat.jpeg"',
        })
        guess = await FilenameResolver(source).resolve("https://example.com/dl?id=1")

        assert guess == FilenameGuess(filename="cat.jpeg", mime_ext=".jpg")
        assert guess.to_dict() == {"mimeExt": ".jpg", "filename": "cat.jpeg"}

    @pytest.mark.asyncio
    async def test_requests_both_headers(self, header_source_factory):
        """Test the resolver asks for exactly the two headers it uses."""
        source = header_source_factory({})
        await FilenameResolver(source).resolve("https://example.com/a")
        assert source.calls == [("https://example.com/a", list(HEADER_NAMES))]
        assert set(HEADER_NAMES) == {CONTENT_DISPOSITION, CONTENT_TYPE}

    @pytest.mark.asyncio
    async def test_no_headers(self, header_source_factory):
        """Test absent headers simply give an empty guess."""
        guess = await FilenameResolver(header_source_factory({})).resolve("https://example.com/a")
        assert guess == FilenameGuess()
        assert guess.to_dict() == {}

    @pytest.mark.asyncio
    async def test_mime_only(self, header_source_factory):
        """Test an image without disposition yields only the MIME extension."""
        source = header_source_factory({CONTENT_TYPE: "image/svg+xml"})
        guess = await FilenameResolver(source).resolve("https://example.com/logo")
        assert guess.to_dict() == {"mimeExt": ".svg"}

    @pytest.mark.asyncio
    async def test_disposition_only(self, header_source_factory):
        """Test a non-image with disposition yields only the filename."""
        source = header_source_factory({
            CONTENT_TYPE: "application/pdf",
            CONTENT_DISPOSITION: "attachment; filename=report%202024.pdf",
        })
        guess = await FilenameResolver(source).resolve("https://example.com/r")
        assert guess.to_dict() == {"filename": "report 2024.pdf"}

    @pytest.mark.asyncio
    async def test_error_propagates_unchanged(self, header_source_factory, not_found_error):
        """Test a header source failure reaches the caller as the same object."""
        source = header_source_factory(error=not_found_error)
        with pytest.raises(HeaderFetchError) as exc_info:
            await FilenameResolver(source).resolve("https://example.com/missing.jpg")

        assert exc_info.value is not_found_error
        assert exc_info.value.status == 404
        assert exc_info.value.status_text == "Not Found"

    @pytest.mark.asyncio
    async def test_any_error_propagates(self, header_source_factory):
        """Test arbitrary exceptions from the source are not wrapped."""
        error = RuntimeError("transport exploded")
        with pytest.raises(RuntimeError) as exc_info:
            await FilenameResolver(header_source_factory(error=error)).resolve("https://x")
        assert exc_info.value is error

    @pytest.mark.asyncio
    async def test_source_passed_per_call(self, header_source_factory):
        """Test a source given to resolve overrides the resolver's own."""
        default = header_source_factory({CONTENT_TYPE: "image/png"})
        override = header_source_factory({CONTENT_TYPE: "image/gif"})
        guess = await FilenameResolver(default).resolve("https://x", override)
        assert guess.mime_ext == ".gif"
        assert default.calls == []

    @pytest.mark.asyncio
    async def test_no_source(self):
        """Test resolving without any header source is an error."""
        with pytest.raises(ValueError):
            await FilenameResolver().resolve("https://x")

    @pytest.mark.asyncio
    async def test_mime_overrides(self, header_source_factory):
        """Test custom MIME overrides are applied."""
        source = header_source_factory({CONTENT_TYPE: "image/jpeg"})
        resolver = FilenameResolver(source, mime_overrides={"jpeg": "jpe"})
        guess = await resolver.resolve("https://x")
        assert guess.mime_ext == ".jpe"

    @pytest.mark.asyncio
    async def test_unusable_disposition_logs_warning(self, header_source_factory, caplog):
        """Test a disposition without a filename value is logged."""
        source = header_source_factory({CONTENT_DISPOSITION: "attachment; filename="})
        guess = await FilenameResolver(source).resolve("https://x")
        assert guess.filename is None
        assert "No usable filename" in caplog.text

    @pytest.mark.asyncio
    async def test_resolve_filename_function(self, header_source_factory):
        """Test the module level helper."""
        source = header_source_factory({CONTENT_TYPE: "image/png"})
        guess = await resolve_filename("https://x", source)
        assert guess == FilenameGuess(mime_ext=".png")

    def test_from_config(self):
        """Test a resolver built from config uses a RequestsHeaderSource."""
        config = HeaderConfig(timeout=5, mime_overrides={"jpeg": ".jpeg"})
        resolver = FilenameResolver.from_config(config)
        assert isinstance(resolver.header_source, RequestsHeaderSource)
        assert resolver.header_source.timeout == 5
        assert resolver.mime_overrides == {"jpeg": "jpeg"}


class TestRequestsHeaderSource:
    """Test cases for RequestsHeaderSource."""

    def _session(self, headers=None, status_code=200, error=None):
        session = Mock(spec=requests.Session)
        if error is not None:
            session.head.side_effect = error
        else:
            response = Mock()
            response.status_code = status_code
            response.headers = CaseInsensitiveDict(headers or {})
            session.head.return_value = response
        return session

    def test_fetch_returns_requested_headers(self):
        """Test requested headers are returned, missing ones as None."""
        session = self._session({"content-type": "image/png"})
        source = RequestsHeaderSource(timeout=7, user_agent="ua", session=session)

        headers = source.fetch("https://example.com/a.png", ["Content-Type", "Content-Disposition"])

        assert headers == {"Content-Type": "image/png", "Content-Disposition": None}
        session.head.assert_called_once_with(
            "https://example.com/a.png",
            headers={'User-Agent': "ua"},
            timeout=7,
            allow_redirects=True
        )

    def test_http_error_status_still_returns_headers(self):
        """Test a 404 response is not a fetch failure."""
        session = self._session({"Content-Type": "text/html"}, status_code=404)
        source = RequestsHeaderSource(session=session)
        assert source.fetch("https://x", ["Content-Type"]) == {"Content-Type": "text/html"}

    def test_connection_error(self):
        """Test transport failures raise HeaderFetchError with status 0."""
        error = requests.ConnectionError("refused")
        source = RequestsHeaderSource(session=self._session(error=error))

        with pytest.raises(HeaderFetchError) as exc_info:
            source.fetch("https://x", ["Content-Type"])

        assert exc_info.value.status == 0
        assert exc_info.value.status_text == "refused"
        assert exc_info.value.cause is error
        assert exc_info.value.error_code == ErrorCode.NETWORK_CONNECTION_FAILED

    def test_timeout(self):
        """Test timeouts raise HeaderFetchError with the timeout code."""
        source = RequestsHeaderSource(session=self._session(error=requests.Timeout("slow")))
        with pytest.raises(HeaderFetchError) as exc_info:
            source.fetch("https://x", ["Content-Type"])
        assert exc_info.value.error_code == ErrorCode.NETWORK_TIMEOUT

    def test_from_config(self):
        """Test settings are taken from HeaderConfig."""
        config = HeaderConfig(timeout=12, user_agent="agent", allow_redirects=False)
        source = RequestsHeaderSource.from_config(config)
        assert source.timeout == 12
        assert source.user_agent == "agent"
        assert source.allow_redirects is False

    def test_close(self):
        """Test close releases the session."""
        session = self._session()
        RequestsHeaderSource(session=session).close()
        session.close.assert_called_once_with()

    def test_context_manager_closes_session(self):
        """Test leaving a with block closes the session, even on errors."""
        session = self._session()
        with pytest.raises(RuntimeError):
            with RequestsHeaderSource(session=session) as source:
                assert source.session is session
                raise RuntimeError("boom")
        session.close.assert_called_once_with()

    @pytest.mark.asyncio
    async def test_async_call(self):
        """Test awaiting the source runs the HEAD request."""
        session = self._session({"Content-Disposition": 'attachment; filename="x.gif"'})
        source = RequestsHeaderSource(session=session)
        headers = await source("https://x", ("Content-Disposition",))
        assert headers == {"Content-Disposition": 'attachment; filename="x.gif"'}

    @pytest.mark.asyncio
    @pytest.mark.integration
    async def test_resolver_with_requests_source(self):
        """Test the resolver end to end over a mocked session."""
        session = self._session({
            "Content-Type": "image/jpeg",
            "Content-Disposition": 'attachment; filename="cat.jpeg"',
        })
        resolver = FilenameResolver(RequestsHeaderSource(session=session))
        guess = await resolver.resolve("https://example.com/cat")
        assert guess.to_dict() == {"mimeExt": ".jpg", "filename": "cat.jpeg"}
