"""
Conversion between stored 24-hour "HH:MM" times and the 12-hour AM/PM
picker used by event and slot forms.

Times are venue-local wall clock; no timezone is applied.
"""
import re
from datetime import time
from typing import Optional, Tuple, Union

from app.core.exceptions import ValidationError
from app.models.schedule import DisplayTime, Period

TIME24_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})(?::\d{2}(?:\.\d+)?)?$")

# Shown when a stored time is missing or unreadable
DEFAULT_DISPLAY_TIME = DisplayTime(hour12=12, minute=0, period=Period.PM)


def parse_time24(value: Union[str, time, None]) -> Tuple[int, int]:
    """Parse a 24h time into (hour, minute). Raises ValidationError when invalid."""
    if isinstance(value, time):
        return value.hour, value.minute

    if not isinstance(value, str):
        raise ValidationError("Time is required", {"value": value})

    match = TIME24_PATTERN.match(value.strip())
    if not match:
        raise ValidationError(f"Invalid time '{value}', expected HH:MM", {"value": value})

    hour, minute = int(match.group(1)), int(match.group(2))
    if not 0 <= hour <= 23 or not 0 <= minute <= 59:
        raise ValidationError(f"Invalid time '{value}', hour must be 0-23 and minute 0-59", {"value": value})

    return hour, minute


def to_display(time24: Union[str, time, None]) -> DisplayTime:
    """Convert a stored time to the picker representation, defaulting to noon"""
    try:
        hour, minute = parse_time24(time24)
    except ValidationError:
        return DEFAULT_DISPLAY_TIME

    period = Period.PM if hour >= 12 else Period.AM
    hour12 = 12 if hour % 12 == 0 else hour % 12
    return DisplayTime(hour12=hour12, minute=minute, period=period)


def to_storage(hour12: int, minute: int, period: Union[Period, str]) -> str:
    """Convert picker values to the stored "HH:MM" form"""
    try:
        period = Period(str(getattr(period, 'value', period)).upper())
    except ValueError:
        raise ValidationError(f"Invalid period '{period}', expected AM or PM")

    if not isinstance(hour12, int) or not 1 <= hour12 <= 12:
        raise ValidationError(f"Invalid hour '{hour12}', expected 1-12")
    if not isinstance(minute, int) or not 0 <= minute <= 59:
        raise ValidationError(f"Invalid minute '{minute}', expected 0-59")

    hour = hour12
    if period == Period.PM and hour != 12:
        hour += 12
    if period == Period.AM and hour == 12:
        hour = 0

    return f"{hour:02d}:{minute:02d}"


def display_to_storage(display: DisplayTime) -> str:
    return to_storage(display.hour12, display.minute, display.period)


def coerce_time_field(value, hour=None, minute=None, period=None) -> Optional[str]:
    """
    Resolve a form time field that arrives either as "HH:MM" or as the
    picker triple. Returns None when nothing was submitted.
    """
    if hour not in (None, "") and period not in (None, ""):
        try:
            return to_storage(int(hour), int(minute or 0), period)
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid time {hour}:{minute} {period}")

    if value in (None, ""):
        return None

    parsed_hour, parsed_minute = parse_time24(value)
    return f"{parsed_hour:02d}:{parsed_minute:02d}"
