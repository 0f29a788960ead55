"""
Front-matter parser for PostBook articles.

An article starts with a YAML header bounded by ``---`` lines:

---
title: "Moving large objects between PostgreSQL clusters"
date: 2019-03-11 21:21:48
categories:
    - database
tags: [postgresql, lob]
---
Body text follows the closing delimiter.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Dict, List, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from . import settings

DELIMITER = "---"

DATE_KEYS = ("date", "updated")
LIST_KEYS = ("categories", "tags")

# Non-ISO layouts seen in older posts
_FALLBACK_DATE_FORMATS = (
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d %H:%M",
    "%Y/%m/%d",
)

_OFFSET_PATTERN = re.compile(r'^([+-])(\d{2}):?(\d{2})$')


class FrontMatterError(ValueError):
    """Exception raised when a document header is missing or malformed."""
    pass


def split_front_matter(text: str) -> Tuple[str, str]:
    """Split a document into its raw header text and body.

    Args:
        text: Full document text

    Returns:
        Tuple of (header text without delimiters, body after the closing delimiter)

    Raises:
        FrontMatterError: If the opening or closing delimiter is missing

    Example:
        >>> header, body = split_front_matter("---\\ntitle: X\\n---\\nHello\\n")
        >>> header
        'title: X\\n'
        >>> body
        'Hello\\n'
    """
    if text.startswith('\ufeff'):
        text = text[1:]

    lines = text.splitlines(keepends=True)
    if not lines or lines[0].rstrip() != DELIMITER:
        raise FrontMatterError(f"Missing opening '{DELIMITER}' delimiter on the first line")

    for index in range(1, len(lines)):
        if lines[index].rstrip() == DELIMITER:
            header = ''.join(lines[1:index])
            body = ''.join(lines[index + 1:])
            return header, body

    raise FrontMatterError(f"Missing closing '{DELIMITER}' delimiter after the header block")


def parse_front_matter(text: str) -> Tuple[Dict, str]:
    """Parse the header block of a document.

    Args:
        text: Full document text

    Returns:
        Tuple of (header mapping, body). Values are left as YAML loaded them;
        see normalize_front_matter() for coercion of the recognized keys.

    Raises:
        FrontMatterError: If the delimiters are missing, the YAML is invalid
            or the header is not a key-value mapping
    """
    header_text, body = split_front_matter(text)

    try:
        data = yaml.safe_load(header_text)
    except (yaml.YAMLError, ValueError) as exc:
        # ValueError: YAML timestamps that are not real dates (2025-02-30)
        raise FrontMatterError(f"Invalid YAML in header: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise FrontMatterError(
            f"Header must be a key-value mapping, got: {type(data).__name__}"
        )

    return {str(key): value for key, value in data.items()}, body


def normalize_front_matter(metadata: Dict, default_tz: Optional[tzinfo] = None) -> Dict:
    """Coerce the recognized header keys to their canonical Python types.

    - title: text
    - date, updated: timezone-aware datetime
    - categories, tags: list of text (scalars wrapped, nested lists flattened)

    Unrecognized keys are passed through untouched, in their original order.

    Raises:
        FrontMatterError: If a recognized key holds a value of the wrong shape
    """
    if default_tz is None:
        default_tz = resolve_timezone(settings.DEFAULT_TIMEZONE)

    normalized = dict(metadata)

    # "tags: sql, backup" is a single YAML string
    if isinstance(normalized.get('tags'), str) and ',' in normalized['tags']:
        normalized['tags'] = normalized['tags'].split(',')

    if 'title' in normalized:
        normalized['title'] = _coerce_text('title', normalized['title'])

    for key in DATE_KEYS:
        if key in normalized:
            normalized[key] = parse_date(normalized[key], default_tz, key=key)

    for key in LIST_KEYS:
        if key in normalized:
            normalized[key] = _coerce_list(key, normalized[key])

    return normalized


def dump_front_matter(metadata: Dict) -> str:
    """Serialize a header mapping, including both delimiter lines.

    Keys keep their insertion order; short lists are written inline
    (``tags: [git, rebase]``).
    """
    if metadata:
        header = yaml.safe_dump(
            dict(metadata),
            sort_keys=False,
            allow_unicode=True,
            default_flow_style=None,
            width=120,
        )
    else:
        header = ''
    return f"{DELIMITER}\n{header}{DELIMITER}\n"


def resolve_timezone(name: str) -> tzinfo:
    """Resolve an IANA zone name or a fixed offset such as ``+08:00``."""
    if name.upper() in ('UTC', 'Z'):
        return timezone.utc

    match = _OFFSET_PATTERN.match(name.strip())
    if match:
        sign, hours, minutes = match.groups()
        delta = timedelta(hours=int(hours), minutes=int(minutes))
        return timezone(-delta if sign == '-' else delta)

    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise FrontMatterError(f"Unknown timezone: {name}") from exc


def parse_date(value, default_tz: tzinfo, key: str = 'date') -> Optional[datetime]:
    """Convert a header date value to an aware datetime.

    Args:
        value: datetime, date or string as loaded from YAML
        default_tz: Zone applied when the value carries no offset
        key: Header key, for error messages

    Returns:
        Timezone-aware datetime, or None for an empty value

    Raises:
        FrontMatterError: If the value cannot be interpreted as a timestamp
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time())
    elif isinstance(value, str):
        parsed = _parse_date_string(value.strip(), key)
        if parsed is None:
            return None
    else:
        raise FrontMatterError(
            f"'{key}' must be a timestamp, got: {type(value).__name__}"
        )

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=default_tz)
    return parsed


def _parse_date_string(text: str, key: str) -> Optional[datetime]:
    if not text:
        return None

    if text.endswith(('Z', 'z')):
        text = text[:-1] + '+00:00'

    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass

    for fmt in _FALLBACK_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue

    raise FrontMatterError(f"Invalid '{key}' value '{text}'. Expected an ISO-8601 timestamp.")


def _coerce_text(key: str, value) -> str:
    if value is None:
        return ''
    if isinstance(value, (dict, list)):
        raise FrontMatterError(f"'{key}' must be text, got: {type(value).__name__}")
    return str(value)


def _coerce_list(key: str, value) -> List[str]:
    if value is None:
        return []
    if isinstance(value, dict):
        raise FrontMatterError(f"'{key}' field must be a list, got: {type(value).__name__}")
    if not isinstance(value, list):
        return [_coerce_text(key, value).strip()]

    items = []
    for item in value:
        if isinstance(item, list):
            items.extend(_coerce_list(key, item))
        elif isinstance(item, dict):
            raise FrontMatterError(f"'{key}' entries must be text, got: {item!r}")
        else:
            items.append(_coerce_text(key, item).strip())
    return items
