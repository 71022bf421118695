"""Conversion of a PDF into an HTML email message (.eml) and output naming."""

import base64
import json
import os
import re
import time
from datetime import datetime, timezone
from email.utils import format_datetime
from pathlib import Path

from pydantic import BaseModel

from .layout import (
    LayoutConfig,
    build_page_html,
    extract_recipient,
    extract_subject,
    extract_to_email,
    iter_pages,
)
from .logger import log_context, logger, set_context

DEFAULT_SUBJECT = os.getenv("DEFAULT_SUBJECT", "MODELO 347")
# Comma separated addresses never used as destination (e.g. the sender's own)
EMAIL_BLACKLIST = frozenset(
    e.strip().lower() for e in os.getenv("EMAIL_BLACKLIST", "").split(",") if e.strip()
)
NO_DETECTED_EMAIL_PREFIX = "NDE"
MAX_FILE_NAME_LENGTH = 120
BASE64_LINE_LENGTH = 76

_UNSAFE_FILE_CHARS = re.compile(r'[\\/:*?"<>|]')
_BODY_REGEX = re.compile(r"<body[^>]*>(.*?)</body>", re.IGNORECASE | re.DOTALL)


class PackagingError(ValueError):
    """Raised when a signature manifest or conversion input is invalid."""


class ConversionResult(BaseModel):
    """Outcome of converting one PDF."""

    original_name: str
    recipient: str
    to_email: str
    subject: str
    base_filename: str
    diagnostics: str
    body_html: str
    eml: str


def sanitize_file_name(name: str | None) -> str:
    return _UNSAFE_FILE_CHARS.sub("_", name or "").strip()[:MAX_FILE_NAME_LENGTH]


def build_output_base_filename(recipient: str, to_email: str, original_name: str) -> str:
    """Name the output after the recipient, flagging files with no detected email."""
    original_base = re.sub(r"\.[^.]+$", "", original_name)
    if not recipient:
        return sanitize_file_name(f"{NO_DETECTED_EMAIL_PREFIX}_UNKNOWN_{original_base}")
    prefix = "" if to_email else f"{NO_DETECTED_EMAIL_PREFIX}_"
    return sanitize_file_name(f"{prefix}{recipient}")


def resolve_file_name_collisions(names: list[str]) -> list[str]:
    """Append ``.eml`` and number repeated names: ``a.eml``, ``a (2).eml``, ..."""
    counts: dict[str, int] = {}
    resolved = []
    for name in names:
        safe = name or "output"
        counts[safe] = counts.get(safe, 0) + 1
        current = counts[safe]
        resolved.append(f"{safe}.eml" if current == 1 else f"{safe} ({current}).eml")
    return resolved


def encode_header_value(value: str) -> str:
    """RFC 2047 base64 encoded-word for a UTF-8 header value."""
    encoded = base64.b64encode(str(value or "").encode("utf-8")).decode("ascii")
    return f"=?UTF-8?B?{encoded}?="


def encode_body(html: str) -> str:
    encoded = base64.b64encode(str(html or "").encode("utf-8")).decode("ascii")
    return "\r\n".join(
        encoded[i : i + BASE64_LINE_LENGTH]
        for i in range(0, len(encoded), BASE64_LINE_LENGTH)
    )


def build_eml(
    body_html: str,
    to_email: str,
    subject: str,
    date: datetime | None = None,
) -> str:
    """Build an RFC 2822 message with a base64 HTML body and CRLF line endings.

    Args:
        body_html: Rendered page fragments (and signature).
        to_email: Destination address; empty means undisclosed recipients.
        subject: Subject, encoded as an RFC 2047 encoded-word.
        date: Message date, defaults to now (UTC).

    Returns:
        The complete message text.
    """
    date = (date or datetime.now(timezone.utc)).astimezone(timezone.utc)
    full_html = (
        "<!DOCTYPE html>\n"
        '<html><head><meta charset="utf-8"></head>\n'
        '<body style="font-family:Calibri,Arial,sans-serif;font-size:11pt;">\n'
        f"{body_html}\n"
        "</body></html>"
    )
    lines = [
        "MIME-Version: 1.0",
        f"Date: {format_datetime(date)}",
        f"To: {to_email or 'undisclosed-recipients:;'}",
        f"Subject: {encode_header_value(subject)}",
        "Content-Type: text/html; charset=UTF-8",
        "Content-Transfer-Encoding: base64",
        "",
        encode_body(full_html),
        "",
    ]
    return "\r\n".join(lines)


def build_diagnostics(body_html: str, eml: str) -> str:
    problems = []
    if not body_html or not body_html.strip():
        problems.append("HTML empty")
    _, separator, body = eml.partition("\r\n\r\n")
    if not separator or not body.strip():
        problems.append("EML empty")
    return "; ".join(problems) if problems else "OK"


class SignatureStore:
    """HTML signatures listed in an ``index.json`` manifest, cached by id.

    The manifest is a list of ``{"id", "label", "path"}`` objects; paths are
    relative to the manifest directory. Full HTML documents are reduced to
    their ``<body>`` content.
    """

    def __init__(self, directory: str | Path | None = None):
        self.directory = Path(directory) if directory else None
        self._labels: dict[str, str] = {}
        self._cache: dict[str, str] = {}

    def load(self) -> None:
        if self.directory is None:
            return
        manifest = self.directory / "index.json"
        if not manifest.exists():
            logger.warn("signature manifest not found", path=str(manifest))
            return

        try:
            entries = json.loads(manifest.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise PackagingError(f"invalid signature manifest {manifest}: {e}") from e

        for entry in entries:
            try:
                sig_id, label, rel_path = entry["id"], entry["label"], entry["path"]
            except (KeyError, TypeError) as e:
                raise PackagingError(f"invalid signature entry: {entry!r}") from e
            path = self.directory / rel_path
            if not path.exists():
                logger.warn("signature file missing", signature_id=sig_id, path=str(path))
                continue
            html = path.read_text(encoding="utf-8")
            body = _BODY_REGEX.search(html)
            self._labels[sig_id] = label
            self._cache[sig_id] = (body.group(1) if body else html).strip()

        logger.info("signatures loaded", count=len(self._cache))

    def available(self) -> list[dict[str, str]]:
        return [{"id": sig_id, "label": label} for sig_id, label in self._labels.items()]

    def get(self, sig_id: str | None) -> str | None:
        if not sig_id:
            return None
        return self._cache.get(sig_id)


def convert_pdf(
    source: str | Path | bytes,
    original_name: str | None = None,
    signature_html: str | None = None,
    config: LayoutConfig | None = None,
    default_subject: str = DEFAULT_SUBJECT,
    blacklist: frozenset[str] = EMAIL_BLACKLIST,
) -> ConversionResult:
    """Convert a PDF into an email message.

    Pages are decoded and rendered one at a time, in order; recipient, email
    and subject come from the first page.

    Args:
        source: PDF path or raw bytes.
        original_name: Upload name used for output naming.
        signature_html: Optional HTML appended after the page content.
        config: Optional engine configuration.
        default_subject: Subject prefix.
        blacklist: Addresses never used as destination.

    Returns:
        ConversionResult with the message and its metadata.
    """
    config = config or LayoutConfig()
    if original_name is None:
        original_name = Path(source).name if not isinstance(source, bytes) else "document.pdf"
    start = time.perf_counter()

    with log_context(file_name=original_name):
        first_page = None
        fragments = []
        for page in iter_pages(source):
            if first_page is None:
                first_page = page
            set_context(page_number=page.page_number)
            fragments.append(build_page_html(page, config))

        body_html = "".join(fragments)
        if signature_html:
            body_html += "<br>" + signature_html

        recipient = extract_recipient(first_page, config.eps, config.line_gap)
        to_email = extract_to_email(first_page, blacklist, config.eps, config.line_gap)
        subject = extract_subject(first_page, default_subject, config.eps, config.line_gap)

        eml = build_eml(body_html, to_email, subject)
        result = ConversionResult(
            original_name=original_name,
            recipient=recipient,
            to_email=to_email,
            subject=subject,
            base_filename=build_output_base_filename(recipient, to_email, original_name),
            diagnostics=build_diagnostics(body_html, eml),
            body_html=body_html,
            eml=eml,
        )
        logger.info(
            "pdf converted",
            pages=len(fragments),
            recipient=recipient or None,
            to_email=to_email or None,
            diagnostics=result.diagnostics,
            elapsed_ms=round((time.perf_counter() - start) * 1000, 1),
        )
        return result
