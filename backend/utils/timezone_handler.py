#!/usr/bin/env python3
"""
🇮🇳 TIMEZONE HANDLER FOR INDIA
==============================
CPCB stations report in Indian Standard Time (UTC+5:30, no DST).
Converts feed fetch timestamps into the short labels shown to users.
"""

from datetime import datetime, timezone
from typing import Optional

import pytz

INDIA_TIMEZONE = 'Asia/Kolkata'
LABEL_FORMAT = '%I:%M %p'


def to_india_time(epoch_seconds: float) -> datetime:
    """Convert epoch seconds to an aware datetime in IST"""
    utc_dt = datetime.fromtimestamp(epoch_seconds, tz=timezone.utc)
    return utc_dt.astimezone(pytz.timezone(INDIA_TIMEZONE))


def format_time_label(epoch_seconds: float, fmt: str = LABEL_FORMAT) -> str:
    """Human-readable time label such as ``04:05 PM``"""
    return to_india_time(epoch_seconds).strftime(fmt)


def parse_feed_timestamp(lastupdate: Optional[str]) -> Optional[datetime]:
    """
    Parse a station ``lastupdate`` attribute (``19-10-2026 16:00:00``) as IST

    Returns None when the attribute is missing or unparseable.
    """
    if not lastupdate:
        return None
    try:
        naive = datetime.strptime(lastupdate.strip(), "%d-%m-%Y %H:%M:%S")
    except ValueError:
        return None
    return pytz.timezone(INDIA_TIMEZONE).localize(naive)
