"""Timestamp resolution for jsontimeseries.

Each sample carries the timestamp of the nearest enclosing object that
defines one. The root object of a document is checked first; if it has
no usable timestamp the caller's default provider is asked, and if there
is none the wall-clock time at extraction is used. In recursive mode,
nested objects may redefine the timestamp for their own subtree.
"""

import logging
import math
import numbers
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Optional, Tuple

from dateutil.parser import isoparse

from .node import is_object
from .pointer import MISSING, JsonPath, resolve_pointer


log = logging.getLogger(__name__)

TimestampParser = Callable[[Any], Optional[datetime]]
DefaultTimestampProvider = Callable[[], Optional[datetime]]

UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class TimestampSource(Enum):
    """Where a sample's timestamp came from."""
    DOCUMENT = "document"                    # Read from the JSON document
    FALLBACK_PROVIDER = "fallback_provider"  # Supplied by the default timestamp provider
    CURRENT_TIME = "current_time"            # Wall-clock time at extraction


@dataclass(frozen=True)
class ParsedTimestamp:
    """A timestamp in scope during traversal.

    Attributes:
        value: The point in time
        source: Provenance of the value
        origin_path: Path of the document node the value was read from,
            relative to the processing root. None unless source is DOCUMENT.
    """
    value: datetime
    source: TimestampSource
    origin_path: Optional[JsonPath] = None


def _parse_datetime_text(text: str) -> Optional[datetime]:
    text = text.strip()
    if not text:
        return None
    try:
        parsed = isoparse(text)
    except (ValueError, OverflowError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_timestamp_value(value: Any) -> Optional[datetime]:
    """Interpret a raw JSON value as a timestamp.

    Strings are parsed as ISO 8601 date/time literals with
    ``dateutil.parser.isoparse`` (values without an offset are taken as
    UTC; fractions beyond microseconds are truncated). Numbers are
    milliseconds since the Unix epoch. Anything else, or a value that
    fails to parse, gives None.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, str):
        return _parse_datetime_text(value)
    if isinstance(value, numbers.Number) and not isinstance(value, complex):
        try:
            millis = value if isinstance(value, int) else float(value)
            if not math.isfinite(millis):
                return None
            return UNIX_EPOCH + timedelta(milliseconds=millis)
        except (OverflowError, ValueError):
            return None
    return None


def try_resolve_timestamp(
    node: Any,
    timestamp_path: Optional[JsonPath],
    parser: Optional[TimestampParser] = None,
) -> Tuple[Optional[datetime], bool]:
    """Try to read a timestamp from an object.

    Args:
        node: Candidate object
        timestamp_path: Path of the timestamp relative to ``node``
        parser: Optional custom parser; it receives the raw value and
            returns a datetime, or None if the value is unusable. No other
            interpretation is attempted when a parser is given.

    Returns:
        ``(timestamp, True)`` on success, ``(None, False)`` otherwise
    """
    if timestamp_path is None or not is_object(node):
        return None, False

    raw = resolve_pointer(node, timestamp_path)
    if raw is MISSING:
        return None, False

    timestamp = parser(raw) if parser is not None else parse_timestamp_value(raw)
    if timestamp is None:
        return None, False
    return timestamp, True


def resolve_fallback_timestamp(provider: Optional[DefaultTimestampProvider] = None) -> ParsedTimestamp:
    """Produce the fallback timestamp for a document without one."""
    if provider is not None:
        value = provider()
        if value is not None:
            log.debug("Using fallback provider timestamp %s", value)
            return ParsedTimestamp(value, TimestampSource.FALLBACK_PROVIDER)

    value = datetime.now(timezone.utc)
    log.debug("Using current time %s as document timestamp", value)
    return ParsedTimestamp(value, TimestampSource.CURRENT_TIME)


def resolve_document_timestamp(
    document: Any,
    timestamp_path: Optional[JsonPath],
    parser: Optional[TimestampParser] = None,
    provider: Optional[DefaultTimestampProvider] = None,
) -> ParsedTimestamp:
    """Apply the full fallback chain to a top-level document.

    1. The timestamp read from ``document`` at ``timestamp_path``
    2. The value returned by ``provider``
    3. The current UTC time
    """
    value, matched = try_resolve_timestamp(document, timestamp_path, parser)
    if matched:
        return ParsedTimestamp(value, TimestampSource.DOCUMENT, timestamp_path)
    return resolve_fallback_timestamp(provider)
