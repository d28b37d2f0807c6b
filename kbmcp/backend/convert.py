"""Convert downloaded document bytes into text, markdown or HTML."""

from __future__ import annotations

import html
import io
import logging
import re
import zipfile
from dataclasses import dataclass

import mammoth
from bs4 import BeautifulSoup
from markdownify import ATX, MarkdownConverter
from pypdf import PdfReader
from pypdf.errors import PdfReadError

from ..core.model import OutputFormat
from ..errors import ConversionError

logger = logging.getLogger(__name__)

PDF_MIME = "application/pdf"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
HTML_MIME = "text/html"

_BLANK_LINES_RE = re.compile(r"\n{3,}")
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(slots=True)
class _Extracted:
    text: str
    html: str | None = None
    markdown: str | None = None


def _decode(data: bytes | str) -> str:
    if isinstance(data, str):
        return data
    return data.decode("utf-8", errors="replace")


def _extract_pdf(data: bytes | str) -> _Extracted:
    if isinstance(data, str):
        raise ConversionError("Failed to parse PDF: expected binary content")
    try:
        reader = PdfReader(io.BytesIO(data))
        pages = [page.extract_text() or "" for page in reader.pages]
    except (PdfReadError, ValueError, OSError) as exc:
        raise ConversionError(f"Failed to parse PDF: {exc}") from exc
    return _Extracted(text="\n".join(pages).strip())


def _extract_docx(data: bytes | str) -> _Extracted:
    if isinstance(data, str):
        raise ConversionError("Failed to parse DOCX: expected binary content")
    try:
        rendered = mammoth.convert_to_html(io.BytesIO(data))
        raw = mammoth.extract_raw_text(io.BytesIO(data))
    except (zipfile.BadZipFile, KeyError, ValueError) as exc:
        raise ConversionError(f"Failed to parse DOCX: {exc}") from exc
    for message in rendered.messages:
        logger.debug("DOCX conversion: %s", message)
    return _Extracted(text=_BLANK_LINES_RE.sub("\n\n", raw.value).strip(), html=rendered.value)


def html_to_text(markup: str) -> str:
    """Strip tags, scripts and styles and collapse whitespace."""
    soup = BeautifulSoup(markup, "html.parser")
    for tag in soup(["script", "style"]):
        tag.decompose()
    return _WHITESPACE_RE.sub(" ", soup.get_text(" ")).strip()


_markdown = MarkdownConverter(heading_style=ATX, bullets="-")


def html_to_markdown(markup: str) -> str:
    """Render ``markup`` as markdown with ATX headings; scripts and styles are dropped."""
    soup = BeautifulSoup(markup, "html.parser")
    for tag in soup(["script", "style", "head"]):
        tag.decompose()
    markdown = _markdown.convert_soup(soup)
    return _BLANK_LINES_RE.sub("\n\n", markdown).strip()


def text_to_html(text: str) -> str:
    return f"<pre>{html.escape(text, quote=True)}</pre>"


def _extract(data: bytes | str, source_mime: str) -> _Extracted:
    if source_mime == PDF_MIME:
        return _extract_pdf(data)
    if source_mime == DOCX_MIME:
        return _extract_docx(data)
    if source_mime == HTML_MIME:
        markup = _decode(data)
        return _Extracted(text=html_to_text(markup), html=markup)
    return _Extracted(text=_decode(data))


def convert(data: bytes | str, source_mime: str, target: OutputFormat | str) -> str:
    """Convert ``data`` encoded as ``source_mime`` into ``target``.

    Unknown source types are decoded as UTF-8 text. Raises
    :class:`ConversionError` when a binary format cannot be parsed.
    """
    output = OutputFormat.coerce(target, OutputFormat.TEXT)
    extracted = _extract(data, source_mime)
    logger.debug("Converting %s content to %s", source_mime, output.value)
    if output is OutputFormat.HTML:
        return extracted.html if extracted.html is not None else text_to_html(extracted.text)
    if output is OutputFormat.MARKDOWN:
        if extracted.markdown is not None:
            return extracted.markdown
        if extracted.html is not None:
            return html_to_markdown(extracted.html)
        return extracted.text
    return extracted.text


__all__ = ["convert", "html_to_markdown", "html_to_text", "text_to_html"]
