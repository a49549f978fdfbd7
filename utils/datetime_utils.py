#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StudySync v1.0 - Date Utilities
Timezone-aware helpers for local dates and ISO timestamps

Version: 1.0.0
"""

from datetime import datetime, date
from typing import Optional, Union

import pytz

from config import config


def local_tz():
    return config.timezone


def now_local(tz=None) -> datetime:
    return datetime.now(tz or local_tz())


def today_local(tz=None) -> date:
    return now_local(tz).date()


def now_iso(tz=None) -> str:
    return now_local(tz).isoformat()


def date_part(value: Union[str, datetime, date], tz=None) -> date:
    """Calendar date of an ISO string/datetime in the local timezone.

    Naive datetimes are taken as already local; aware ones are converted first.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        return value
    else:
        text = value.strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        if len(text) == 10:
            return date.fromisoformat(text)
        dt = datetime.fromisoformat(text)

    if dt.tzinfo is not None:
        dt = dt.astimezone(tz or local_tz())
    return dt.date()


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """Date of a YYYY-MM-DD string or a full ISO timestamp; anything else raises ValueError"""
    if not value:
        return None
    text = value.strip()
    if len(text) == 10:
        return date.fromisoformat(text)
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    return datetime.fromisoformat(text).date()


def parse_iso_datetime(value: str) -> datetime:
    text = value.strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = pytz.utc.localize(dt)
    return dt
