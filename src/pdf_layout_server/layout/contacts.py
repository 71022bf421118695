"""Recipient, destination email and subject heuristics over assembled lines."""

import re
from collections.abc import Collection

from .config import EPS, LINE_GAP
from .lines import build_line_text, group_into_lines, normalize_pdf_text, strip_invisible_chars
from .models import PageContent

# Only the top part of the first page is searched for the recipient tax id
RECIPIENT_SEARCH_HEIGHT_RATIO = 0.35
# Vertical distance between the "A" line and a mailto: link annotation
MAILTO_Y_TOLERANCE = 20.0

NIF_CODE_REGEX = re.compile(r"\b([A-Z]\d{7,8})\b")
EMAIL_REGEX = re.compile(r"[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}", re.IGNORECASE)
SUBJECT_ANCHOR_REGEX = re.compile(r"Dto\.?\s*de\s*Contabilidad", re.IGNORECASE)
_A_TOKEN = re.compile(r"^A:?$", re.IGNORECASE)
_A_PREFIX = re.compile(r"^A:?\s", re.IGNORECASE)
_A_PREFIX_STRIP = re.compile(r"^A:?\s*", re.IGNORECASE)
_SPACES = re.compile(r"\s+")


def find_first_email(text: str, blacklist: Collection[str] = ()) -> str:
    """Return the first email in ``text`` lowercased, or '' if none or blacklisted."""
    match = EMAIL_REGEX.search(text)
    if not match:
        return ""
    email = match.group(0).lower()
    return "" if email in blacklist else email


def _compact(text: str) -> str:
    return _SPACES.sub("", strip_invisible_chars(text))


def extract_recipient(page: PageContent | None, eps: float = EPS, line_gap: float = LINE_GAP) -> str:
    """Return the text following the first tax id code near the top of the page."""
    if page is None:
        return ""
    upper_limit = page.height * RECIPIENT_SEARCH_HEIGHT_RATIO

    for line in group_into_lines(page.glyphs, eps):
        if line.y > upper_limit:
            continue
        text = build_line_text(line.items, line_gap)
        match = NIF_CODE_REGEX.search(text)
        if match:
            return text[match.end(1):].strip()
    return ""


def extract_to_email(
    page: PageContent | None,
    blacklist: Collection[str] = (),
    eps: float = EPS,
    line_gap: float = LINE_GAP,
) -> str:
    """Find the destination email on the line introduced by an ``A`` / ``A:`` token.

    The address may wrap onto the next line or only be present as a mailto:
    link annotation next to the line.
    """
    if page is None:
        return ""
    lines = group_into_lines(page.glyphs, eps)

    for i, line in enumerate(lines):
        items = sorted(line.items, key=lambda g: g.x)
        first_idx = next(
            (k for k, g in enumerate(items) if normalize_pdf_text(g.text)), None
        )
        if first_idx is None:
            continue
        first_token = normalize_pdf_text(items[first_idx].text)
        rest = items[first_idx + 1:]

        if _A_TOKEN.match(first_token):
            candidate = _compact(build_line_text(rest, line_gap))
        elif _A_PREFIX.match(first_token):
            after_a = _A_PREFIX_STRIP.sub("", first_token)
            rest_text = build_line_text(rest, line_gap)
            candidate = _compact(after_a + (" " + rest_text if rest_text else ""))
        else:
            continue

        if not EMAIL_REGEX.search(candidate) and i + 1 < len(lines):
            candidate += _compact(build_line_text(lines[i + 1].items, line_gap))

        if not find_first_email(candidate, blacklist):
            for annotation in page.annotations:
                if not annotation.url.lower().startswith("mailto:"):
                    continue
                annotation_y = page.height - annotation.rect[3]
                if abs(annotation_y - line.y) <= MAILTO_Y_TOLERANCE:
                    email = annotation.url[len("mailto:"):].split("?")[0].lower()
                    if email and email not in blacklist:
                        return email

        return find_first_email(candidate, blacklist)
    return ""


def extract_subject(
    page: PageContent | None,
    default_subject: str,
    eps: float = EPS,
    line_gap: float = LINE_GAP,
) -> str:
    """Append the signer, the line above the accounting department anchor, to the subject."""
    if page is None:
        return default_subject
    texts = [build_line_text(line.items, line_gap) for line in group_into_lines(page.glyphs, eps)]
    for i, text in enumerate(texts):
        if SUBJECT_ANCHOR_REGEX.search(text):
            signer = next((t for t in reversed(texts[:i]) if t), "")
            if signer:
                return f"{default_subject} {signer}"
            break
    return default_subject
