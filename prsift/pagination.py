"""Opaque cursor-based pagination.

Cursors are URL-safe base64 over a compact JSON array ``[offset, page_size]``.
Callers must treat them as opaque strings; only this module reads or builds
them.
"""

from __future__ import annotations

import base64
import binascii
import json
import math
from dataclasses import dataclass

from .config import MAX_PAGE_SIZE
from .errors import InvalidConfiguration, InvalidCursor


@dataclass(frozen=True)
class Cursor:
    """Decoded pagination position."""

    offset: int
    page_size: int


@dataclass(frozen=True)
class SourcePagination:
    """GitHub REST pagination parameters (1-based page)."""

    page: int
    per_page: int


def _is_int(value: object) -> bool:
    # bool is an int subclass; True must not pass as a page size
    return isinstance(value, int) and not isinstance(value, bool)


def _check_page_size(value: object, label: str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidConfiguration(f"{label} must be a positive finite integer, got {value!r}")
    if not math.isfinite(value) or value < 1 or int(value) != value:
        raise InvalidConfiguration(f"{label} must be a positive finite integer, got {value!r}")
    if value > MAX_PAGE_SIZE:
        raise InvalidConfiguration(f"{label} must not exceed {MAX_PAGE_SIZE}, got {value!r}")
    return int(value)


def encode_cursor(offset: int, page_size: int) -> str:
    """Encode offset and page size into an opaque cursor."""
    if not _is_int(offset) or offset < 0:
        raise InvalidCursor(f"Invalid cursor: offset must be a non-negative integer, got {offset!r}")
    if not _is_int(page_size) or not 1 <= page_size <= MAX_PAGE_SIZE:
        raise InvalidCursor(f"Invalid cursor: page size must be between 1 and {MAX_PAGE_SIZE}, got {page_size!r}")

    payload = json.dumps([offset, page_size], separators=(",", ":"))
    return base64.urlsafe_b64encode(payload.encode()).decode("ascii")


def decode_cursor(token: str) -> Cursor:
    """Decode an opaque cursor.

    Raises InvalidCursor for anything that is not a token produced by
    encode_cursor. Values are never clamped.
    """
    if not isinstance(token, str) or not token:
        raise InvalidCursor("Invalid cursor: empty cursor")

    try:
        raw = base64.b64decode(token.encode("ascii"), altchars=b"-_", validate=True)
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeError, binascii.Error, ValueError) as e:
        raise InvalidCursor(f"Invalid cursor: malformed cursor ({e})") from e

    if not isinstance(data, list) or len(data) != 2:
        raise InvalidCursor("Invalid cursor: malformed cursor")

    offset, page_size = data
    if not _is_int(offset) or offset < 0:
        raise InvalidCursor("Invalid cursor: offset must be a non-negative integer")
    if not _is_int(page_size) or not 1 <= page_size <= MAX_PAGE_SIZE:
        raise InvalidCursor(f"Invalid cursor: page size must be an integer between 1 and {MAX_PAGE_SIZE}")

    return Cursor(offset=offset, page_size=page_size)


def page_to_source_pagination(cursor: str | None, default_page_size: int) -> SourcePagination:
    """Translate a cursor into GitHub ``page``/``per_page`` parameters.

    The page size carried by a cursor can only be reduced by the server
    default, never enlarged.
    """
    default_page_size = _check_page_size(default_page_size, "default_page_size")

    if cursor:
        decoded = decode_cursor(cursor)
        offset = decoded.offset
        page_size = min(decoded.page_size, default_page_size)
    else:
        offset = 0
        page_size = default_page_size

    return SourcePagination(page=offset // page_size + 1, per_page=page_size)


def next_cursor(current: str | None, page_size_used: int, has_more: bool) -> str | None:
    """Build the cursor for the page after ``current``, or None at the end."""
    if not has_more:
        return None

    page_size_used = _check_page_size(page_size_used, "page_size_used")
    prior_offset = decode_cursor(current).offset if current else 0
    return encode_cursor(prior_offset + page_size_used, page_size_used)
