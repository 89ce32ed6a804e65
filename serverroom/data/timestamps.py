"""
Timestamp Helpers
=================
Parse và format timestamps dùng chung cho access log và sensor data.

Quy ước:
    - Timestamps không có timezone được hiểu là UTC
    - Output ISO-8601 với milliseconds và hậu tố 'Z'
"""

import re
from datetime import datetime, timezone
from typing import Optional

import pandas as pd

# Timestamp phải bắt đầu bằng năm, loại các keyword như 'now', 'today'
DATE_PREFIX = re.compile(r'^\d{4}-\d{2}-\d{2}')


def utcnow() -> datetime:
    """Thời điểm hiện tại (UTC, tz-aware)."""
    return datetime.now(timezone.utc)


def parse_timestamp(value) -> Optional[datetime]:
    """
    Parse một timestamp string thành datetime tz-aware (UTC).

    Args:
        value: Chuỗi timestamp (ISO-8601, 'YYYY-MM-DD HH:MM:SS.fff', ...)

    Returns:
        datetime UTC, hoặc None nếu không parse được
    """
    if value is None:
        return None
    text = str(value).strip()
    if not DATE_PREFIX.match(text):
        return None
    try:
        ts = pd.to_datetime(text, utc=True, errors='coerce')
    except (ValueError, TypeError, OverflowError):
        return None
    if pd.isna(ts):
        return None
    return ts.to_pydatetime()


def ensure_utc(dt: Optional[datetime]) -> datetime:
    """Chuẩn hóa datetime về UTC; None → thời điểm hiện tại."""
    if dt is None:
        return utcnow()
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_iso(dt: datetime) -> str:
    """
    Format datetime theo ISO-8601 UTC, milliseconds và hậu tố 'Z'.

    Ví dụ: 2025-04-23T02:21:47.489Z
    """
    return ensure_utc(dt).isoformat(timespec='milliseconds').replace('+00:00', 'Z')
