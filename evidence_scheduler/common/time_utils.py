from __future__ import annotations

from datetime import date, datetime


def parse_start_date(value: str | date) -> date:
    # Accepts 'today', plain ISO dates (2015-09-04) and ISO datetimes.
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = value.strip()
    if text.lower() == "today":
        return date.today()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    if "T" in text:
        return datetime.fromisoformat(text).date()
    return date.fromisoformat(text)
