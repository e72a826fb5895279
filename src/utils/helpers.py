"""
Utility functions and helpers
"""

import re
import logging
from datetime import datetime, date, timezone
from decimal import Decimal
from typing import Any, Dict, Optional, Union
from uuid import UUID

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Union[str, datetime, date, None]) -> Optional[datetime]:
    """Parse an ISO timestamp (or date) into a timezone-aware UTC datetime"""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)

    timestamp_str = str(value).strip()
    # Handle ISO format with 'Z' (UTC)
    if timestamp_str.endswith('Z'):
        timestamp_str = timestamp_str[:-1] + '+00:00'

    parsed = datetime.fromisoformat(timestamp_str)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_date(value: Union[str, datetime, date, None]) -> Optional[date]:
    """Parse a calendar date, accepting full timestamps too"""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if len(text) == 10:
        return date.fromisoformat(text)
    return parse_timestamp(text).date()


def serialize_value(value: Any) -> Any:
    """Convert database values to JSON friendly primitives"""
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Decimal):
        return float(value)
    if hasattr(value, 'isoformat'):
        return value.isoformat()
    if isinstance(value, list):
        return [serialize_value(item) for item in value]
    if isinstance(value, dict):
        return {key: serialize_value(item) for key, item in value.items()}
    return value


def serialize_row(row: Any) -> Dict[str, Any]:
    return {key: serialize_value(value) for key, value in dict(row).items()}


def slugify(title: str) -> str:
    """Lowercase, collapse non-alphanumeric runs to '-', trim leading and trailing dashes"""
    slug = re.sub(r"[^a-z0-9]+", "-", title.lower())
    return slug.strip("-")


def is_valid_email(email: Optional[str]) -> bool:
    return bool(email) and EMAIL_PATTERN.match(email.strip()) is not None


def full_name(record: Optional[Dict[str, Any]]) -> str:
    if not record:
        return ""
    return f"{record.get('first_name', '')} {record.get('last_name', '')}".strip()


def format_time_12h(moment: datetime) -> str:
    """Format a time as '7:30 PM'"""
    hour = moment.hour % 12 or 12
    suffix = "AM" if moment.hour < 12 else "PM"
    return f"{hour}:{moment.minute:02d} {suffix}"


def paginate(total: int, page: int, limit: int) -> Dict[str, Any]:
    total_pages = (total + limit - 1) // limit if limit else 0
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": total_pages,
        "has_next_page": page < total_pages,
        "has_previous_page": page > 1,
    }
