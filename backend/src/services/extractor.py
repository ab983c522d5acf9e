"""Content extractor - normalized title/content for URLs and uploaded files."""

from __future__ import annotations

import asyncio
import io
import logging
import re
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import List, Optional, Union
from urllib.parse import urljoin, urlparse

import httpx
import PyPDF2
from bs4 import BeautifulSoup

from ..models.item import MAX_CONTENT_CHARS
from .config import AppConfig, get_config

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_URL = "https://images.unsplash.com/photo-1516321318423-f06f85e504b3?w=800"
USER_AGENT = "Mozilla/5.0 (compatible; EdenCapture/1.0; +https://eden.local)"

PDF_TYPES = {"application/pdf"}
HTML_TYPES = {"text/html", "application/xhtml+xml"}
TEXT_TYPES = {"text/plain", "text/markdown"}
WORD_TYPES = {
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}

WHITESPACE_PATTERN = re.compile(r"\s+")


class ExtractionError(Exception):
    """Raised when a source is unreachable or cannot be parsed."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidSourceError(ExtractionError):
    """Raised for malformed URLs and unsupported or oversized files."""


@dataclass
class ExtractedContent:
    """Normalized single-document extraction result."""

    title: str
    content: str
    domain: str
    favicon: Optional[str] = None
    image_url: Optional[str] = None


@dataclass
class BookmarkEntry:
    url: str
    title: str


@dataclass
class BookmarkExport:
    """A browser bookmark export, expanded into URL inputs."""

    entries: List[BookmarkEntry] = field(default_factory=list)
    title: str = "Bookmarks Import"


FileExtraction = Union[ExtractedContent, BookmarkExport]


def normalize_text(text: str) -> str:
    """Collapse whitespace runs and trim."""
    return WHITESPACE_PATTERN.sub(" ", text or "").strip()


def truncate(text: str) -> str:
    return text[:MAX_CONTENT_CHARS]


def derive_domain(url: str) -> str:
    """Lower-cased host with a leading ``www.`` removed."""
    host = (urlparse(url).hostname or "").lower()
    return host[4:] if host.startswith("www.") else host


def favicon_url(domain: str) -> str:
    return f"https://www.google.com/s2/favicons?domain={domain}&sz=64"


def require_http_url(url: str) -> str:
    """Trim and validate a URL input; raises InvalidSourceError."""
    cleaned = (url or "").strip()
    if not cleaned:
        raise InvalidSourceError("URL is required")
    parsed = urlparse(cleaned)
    if not cleaned.startswith("http") or parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidSourceError(f"Invalid URL: {cleaned[:200]}")
    return cleaned


def is_bookmark_file(html: str) -> bool:
    """Detect Netscape bookmark exports and link-list markup."""
    lower = html.lower()
    return (
        "netscape-bookmark-file" in lower
        or ("<dt><a href=" in lower and "<dl>" in lower)
        or ("<a href=" in lower and "add_date=" in lower)
    )


def extract_bookmarks(html: str, limit: int) -> List[BookmarkEntry]:
    """Return up to ``limit`` http(s) links from a bookmark export, in document order."""
    soup = BeautifulSoup(html, "html.parser")
    entries: List[BookmarkEntry] = []
    for anchor in soup.find_all("a", href=True):
        href = anchor["href"].strip()
        if not href.startswith(("http://", "https://")):
            continue
        title = normalize_text(anchor.get_text()) or href
        entries.append(BookmarkEntry(url=href, title=title))
        if len(entries) >= limit:
            break
    return entries


def _html_to_document(html: str, fallback_title: str, base_url: Optional[str] = None):
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "noscript", "template"]):
        tag.decompose()

    title = ""
    og_title = soup.find("meta", attrs={"property": "og:title"})
    if soup.title and soup.title.string:
        title = normalize_text(soup.title.string)
    elif og_title and og_title.get("content"):
        title = normalize_text(og_title["content"])

    image_url = None
    og_image = soup.find("meta", attrs={"property": "og:image"})
    if og_image and og_image.get("content"):
        image_url = og_image["content"].strip()
        if base_url:
            image_url = urljoin(base_url, image_url)

    content = truncate(normalize_text(soup.get_text(" ")))
    return title or fallback_title, content, image_url


def _pdf_to_text(data: bytes) -> str:
    try:
        reader = PyPDF2.PdfReader(io.BytesIO(data))
        text_parts = []
        for page_num, page in enumerate(reader.pages):
            try:
                text = page.extract_text()
            except Exception as e:
                logger.warning(f"Error extracting text from page {page_num + 1}: {e}")
                continue
            if text:
                text_parts.append(text)
    except Exception as e:
        raise ExtractionError("Failed to parse PDF file") from e
    return truncate("\n\n".join(text_parts).strip())


class ContentExtractor:
    """Produce normalized content from URLs and uploaded files."""

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or get_config()
        self._transport = transport

    async def extract_url(self, url: str) -> ExtractedContent:
        """
        Extract a web page.

        Raises:
            InvalidSourceError: If the URL is malformed
            ExtractionError: If the page is unreachable or not parseable
        """
        url = require_http_url(url)
        domain = derive_domain(url)
        favicon = favicon_url(domain)

        if not self.config.fetch_pages:
            return ExtractedContent(
                title=f"Content from {domain}",
                content=truncate(f"Captured content from {url}."),
                domain=domain,
                favicon=favicon,
                image_url=DEFAULT_IMAGE_URL,
            )

        try:
            async with httpx.AsyncClient(
                timeout=self.config.fetch_timeout_seconds,
                follow_redirects=True,
                headers={"User-Agent": USER_AGENT},
                transport=self._transport,
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ExtractionError(
                f"Could not fetch {url}: HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise ExtractionError(f"Could not fetch {url}: {e.__class__.__name__}") from e

        content_type = response.headers.get("content-type", "").split(";")[0].strip().lower()
        final_url = str(response.url)

        if content_type in PDF_TYPES or final_url.lower().endswith(".pdf"):
            title = PurePosixPath(urlparse(final_url).path).stem or f"Content from {domain}"
            return ExtractedContent(
                title=title,
                content=await asyncio.to_thread(_pdf_to_text, response.content),
                domain=domain,
                favicon=favicon,
                image_url=DEFAULT_IMAGE_URL,
            )

        if content_type in TEXT_TYPES:
            return ExtractedContent(
                title=f"Content from {domain}",
                content=truncate(normalize_text(response.text)),
                domain=domain,
                favicon=favicon,
                image_url=DEFAULT_IMAGE_URL,
            )

        if content_type and content_type not in HTML_TYPES:
            raise ExtractionError(f"Unsupported content type at {url}: {content_type}")

        title, content, image_url = await asyncio.to_thread(
            _html_to_document, response.text, f"Content from {domain}", final_url
        )
        return ExtractedContent(
            title=title,
            content=content,
            domain=domain,
            favicon=favicon,
            image_url=image_url or DEFAULT_IMAGE_URL,
        )

    def extract_file(self, data: bytes, filename: str, content_type: str | None) -> FileExtraction:
        """
        Extract an uploaded file, dispatching on MIME type and extension.

        HTML bookmark exports short-circuit to a :class:`BookmarkExport`.

        Raises:
            InvalidSourceError: For unsupported or oversized files
            ExtractionError: If the file cannot be parsed
        """
        mimetype = (content_type or "").split(";")[0].strip().lower()
        path = PurePosixPath(filename or "upload")
        ext = path.suffix.lower().lstrip(".")
        stem = path.stem or path.name

        if len(data) > self.config.max_upload_bytes:
            raise InvalidSourceError(
                f"File {filename} exceeds the {self.config.max_upload_bytes} byte limit"
            )

        if mimetype in PDF_TYPES or ext == "pdf":
            return ExtractedContent(title=stem, content=_pdf_to_text(data), domain="local")

        if mimetype in HTML_TYPES or ext in ("html", "htm"):
            html = data.decode("utf-8", errors="replace")
            if is_bookmark_file(html):
                entries = extract_bookmarks(html, self.config.max_bookmarks_per_file)
                if entries:
                    logger.info(f"Detected bookmark file {filename} with {len(entries)} URLs")
                    return BookmarkExport(entries=entries)
            title, content, _ = _html_to_document(html, stem)
            return ExtractedContent(title=title, content=content, domain="local")

        if mimetype in TEXT_TYPES or ext in ("txt", "md"):
            text = data.decode("utf-8", errors="replace")
            return ExtractedContent(title=stem, content=truncate(text), domain="local")

        if mimetype in WORD_TYPES or ext in ("doc", "docx"):
            return ExtractedContent(
                title=stem,
                content=f"[Document content from {filename}. Full extraction requires specialized processing.]",
                domain="local",
            )

        raise InvalidSourceError(
            f"Unsupported file type: {mimetype or ext or 'unknown'}. "
            "Please upload HTML, PDF, TXT, MD, or DOC files."
        )


# Singleton instance
_extractor: Optional[ContentExtractor] = None


def get_extractor() -> ContentExtractor:
    """Get or create the extractor singleton."""
    global _extractor
    if _extractor is None:
        _extractor = ContentExtractor()
    return _extractor


__all__ = [
    "ContentExtractor",
    "ExtractedContent",
    "BookmarkEntry",
    "BookmarkExport",
    "ExtractionError",
    "InvalidSourceError",
    "derive_domain",
    "favicon_url",
    "normalize_text",
    "require_http_url",
    "is_bookmark_file",
    "extract_bookmarks",
    "get_extractor",
]
