"""Tests for URL and file content extraction."""

from __future__ import annotations

import asyncio
import time
from pathlib import Path

import httpx
import pytest

from backend.src.models.item import MAX_CONTENT_CHARS
from backend.src.services import extractor as extractor_module
from backend.src.services.config import AppConfig
from backend.src.services.extractor import (
    BookmarkExport,
    ContentExtractor,
    ExtractedContent,
    ExtractionError,
    InvalidSourceError,
    derive_domain,
    extract_bookmarks,
    is_bookmark_file,
    require_http_url,
)

ARTICLE_HTML = """<!DOCTYPE html>
<html>
<head>
  <title>  Thinking   in React </title>
  <meta property="og:image" content="/images/cover.png">
  <style>body { color: red; }</style>
</head>
<body>
  <script>var tracking = true;</script>
  <h1>Thinking in React</h1>
  <p>Break the UI into
     a component hierarchy.</p>
</body>
</html>"""

BOOKMARKS_HTML = """<!DOCTYPE NETSCAPE-Bookmark-file-1>
<META HTTP-EQUIV="Content-Type" CONTENT="text/html; charset=UTF-8">
<TITLE>Bookmarks</TITLE>
<DL><p>
  <DT><A HREF="https://react.dev/learn" ADD_DATE="1700000000">React Docs</A>
  <DT><A HREF="javascript:alert(1)">Bookmarklet</A>
  <DT><A HREF="https://web.dev/vitals/" ADD_DATE="1700000001">Web Vitals</A>
  <DT><A HREF="http://example.com/"></A>
</DL><p>"""


def make_extractor(tmp_path: Path, handler=None, **overrides) -> ContentExtractor:
    config = AppConfig(data_dir=tmp_path, **overrides)
    transport = httpx.MockTransport(handler) if handler else None
    return ContentExtractor(config, transport=transport)


class TestUrlHelpers:
    def test_derive_domain_strips_www_and_lowercases(self) -> None:
        assert derive_domain("https://WWW.Example.COM/path?q=1") == "example.com"
        assert derive_domain("http://docs.python.org/3/") == "docs.python.org"

    @pytest.mark.parametrize("url", ["", "   ", "not-a-url", "ftp://example.com", "http://"])
    def test_require_http_url_rejects_invalid(self, url: str) -> None:
        with pytest.raises(InvalidSourceError):
            require_http_url(url)

    def test_require_http_url_trims(self) -> None:
        assert require_http_url("  https://example.com/a  ") == "https://example.com/a"


class TestExtractUrl:
    @pytest.mark.asyncio
    async def test_pdf_parsing_does_not_block_the_loop(self, tmp_path: Path, monkeypatch) -> None:
        order = []

        def slow_pdf_to_text(data: bytes) -> str:
            time.sleep(0.2)
            order.append("parsed")
            return "Paper body"

        async def ticker() -> None:
            for _ in range(5):
                await asyncio.sleep(0.01)
            order.append("ticked")

        monkeypatch.setattr(extractor_module, "_pdf_to_text", slow_pdf_to_text)

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200, content=b"%PDF-1.4", headers={"content-type": "application/pdf"}
            )

        extractor = make_extractor(tmp_path, handler)
        result, _ = await asyncio.gather(
            extractor.extract_url("https://arxiv.org/paper.pdf"), ticker()
        )

        assert result.content == "Paper body"
        assert order == ["ticked", "parsed"]

    @pytest.mark.asyncio
    async def test_html_page_is_normalized(self, tmp_path: Path) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200, text=ARTICLE_HTML, headers={"content-type": "text/html; charset=utf-8"}
            )

        extractor = make_extractor(tmp_path, handler)
        result = await extractor.extract_url("https://www.react.dev/learn")

        assert isinstance(result, ExtractedContent)
        assert result.title == "Thinking in React"
        assert result.domain == "react.dev"
        assert "react.dev" in result.favicon
        assert result.image_url == "https://www.react.dev/images/cover.png"
        assert "Break the UI into a component hierarchy." in result.content
        assert "tracking" not in result.content
        assert "color: red" not in result.content

    @pytest.mark.asyncio
    async def test_long_content_is_truncated(self, tmp_path: Path) -> None:
        body = "word " * 20_000

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text=body, headers={"content-type": "text/plain"})

        extractor = make_extractor(tmp_path, handler)
        result = await extractor.extract_url("https://example.com/long.txt")

        assert len(result.content) == MAX_CONTENT_CHARS

    @pytest.mark.asyncio
    async def test_http_error_raises_extraction_error(self, tmp_path: Path) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, text="missing")

        extractor = make_extractor(tmp_path, handler)

        with pytest.raises(ExtractionError, match="HTTP 404"):
            await extractor.extract_url("https://example.com/missing")

    @pytest.mark.asyncio
    async def test_connection_error_raises_extraction_error(self, tmp_path: Path) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        extractor = make_extractor(tmp_path, handler)

        with pytest.raises(ExtractionError):
            await extractor.extract_url("https://unreachable.test/")

    @pytest.mark.asyncio
    async def test_unsupported_content_type(self, tmp_path: Path) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"\x00\x01", headers={"content-type": "image/png"})

        extractor = make_extractor(tmp_path, handler)

        with pytest.raises(ExtractionError, match="Unsupported content type"):
            await extractor.extract_url("https://example.com/logo.png")

    @pytest.mark.asyncio
    async def test_invalid_url_fails_before_fetch(self, tmp_path: Path) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200)

        extractor = make_extractor(tmp_path, handler)

        with pytest.raises(InvalidSourceError):
            await extractor.extract_url("not-a-url")
        assert calls == []

    @pytest.mark.asyncio
    async def test_synthesized_content_without_fetch(self, tmp_path: Path) -> None:
        extractor = make_extractor(tmp_path, fetch_pages=False)

        result = await extractor.extract_url("https://www.example.com/post")

        assert result.title == "Content from example.com"
        assert result.domain == "example.com"
        assert "https://www.example.com/post" in result.content


class TestBookmarks:
    def test_netscape_export_is_detected(self) -> None:
        assert is_bookmark_file(BOOKMARKS_HTML)
        assert not is_bookmark_file(ARTICLE_HTML)

    def test_only_http_links_are_kept_in_order(self) -> None:
        entries = extract_bookmarks(BOOKMARKS_HTML, limit=100)

        assert [entry.url for entry in entries] == [
            "https://react.dev/learn",
            "https://web.dev/vitals/",
            "http://example.com/",
        ]
        assert entries[0].title == "React Docs"
        assert entries[2].title == "http://example.com/"

    def test_bookmarks_are_capped(self) -> None:
        links = "\n".join(
            f'<DT><A HREF="https://site{i}.test/" ADD_DATE="1">Site {i}</A>' for i in range(150)
        )
        html = f"<!DOCTYPE NETSCAPE-Bookmark-file-1>\n<DL><p>\n{links}\n</DL>"

        assert len(extract_bookmarks(html, limit=100)) == 100


class TestExtractFile:
    def test_bookmark_file_short_circuits(self, tmp_path: Path) -> None:
        extractor = make_extractor(tmp_path)

        result = extractor.extract_file(BOOKMARKS_HTML.encode(), "bookmarks.html", "text/html")

        assert isinstance(result, BookmarkExport)
        assert len(result.entries) == 3

    def test_bookmark_cap_follows_config(self, tmp_path: Path) -> None:
        extractor = make_extractor(tmp_path, max_bookmarks_per_file=2)

        result = extractor.extract_file(BOOKMARKS_HTML.encode(), "bookmarks.html", "text/html")

        assert isinstance(result, BookmarkExport)
        assert len(result.entries) == 2

    def test_plain_html_file(self, tmp_path: Path) -> None:
        extractor = make_extractor(tmp_path)

        result = extractor.extract_file(ARTICLE_HTML.encode(), "article.html", None)

        assert isinstance(result, ExtractedContent)
        assert result.title == "Thinking in React"
        assert result.domain == "local"

    def test_text_file_uses_stem_as_title(self, tmp_path: Path) -> None:
        extractor = make_extractor(tmp_path)

        result = extractor.extract_file(b"# Notes\nSome notes", "meeting-notes.md", "text/markdown")

        assert result.title == "meeting-notes"
        assert result.content == "# Notes\nSome notes"

    def test_word_document_stub(self, tmp_path: Path) -> None:
        extractor = make_extractor(tmp_path)

        result = extractor.extract_file(b"PK\x03\x04", "report.docx", None)

        assert result.title == "report"
        assert "report.docx" in result.content

    def test_unsupported_file_type(self, tmp_path: Path) -> None:
        extractor = make_extractor(tmp_path)

        with pytest.raises(InvalidSourceError, match="Unsupported file type"):
            extractor.extract_file(b"\x89PNG", "photo.png", "image/png")

    def test_oversized_file(self, tmp_path: Path) -> None:
        extractor = make_extractor(tmp_path, max_upload_bytes=10)

        with pytest.raises(InvalidSourceError, match="exceeds"):
            extractor.extract_file(b"x" * 11, "big.txt", "text/plain")

    def test_invalid_pdf(self, tmp_path: Path) -> None:
        extractor = make_extractor(tmp_path)

        with pytest.raises(ExtractionError, match="PDF"):
            extractor.extract_file(b"not a pdf", "paper.pdf", "application/pdf")
