"""
Time tool: current date/time in an allow-listed timezone. Pure; no I/O.
Unknown or malformed timezones silently fall back to Asia/Seoul.
"""
import logging
from datetime import datetime, timedelta, timezone as dt_timezone
from typing import Any, Literal, Optional
from zoneinfo import ZoneInfo

from pydantic import BaseModel, Field

from tools.base import ErrorSource, TimeData, ToolFailure, ToolResult

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "Asia/Seoul"
ALLOWED_TIMEZONES = (
    "Asia/Seoul",
    "America/New_York",
    "Europe/London",
    "Asia/Tokyo",
    "America/Los_Angeles",
    "Europe/Paris",
    "Asia/Shanghai",
    "UTC",
)
TIME_FORMATS = ("full", "date", "time")


class CurrentTimeInput(BaseModel):
    """Input for the time tool."""
    timezone: str = Field(
        default=DEFAULT_TIMEZONE,
        description=(
            "Timezone identifier (e.g., Asia/Seoul, America/New_York, Europe/London, UTC). "
            "If omitted, Asia/Seoul will be used."
        ),
    )
    format: Literal["full", "date", "time"] = Field(
        default="full",
        description="Time format (full: complete date and time, date: date only, time: time only).",
    )


def resolve_timezone(value: Any) -> str:
    return value if isinstance(value, str) and value in ALLOWED_TIMEZONES else DEFAULT_TIMEZONE


def format_utc_offset(offset: Optional[timedelta]) -> str:
    """'GMT+09:00', 'GMT-04:00', or 'GMT' for zero offset."""
    if not offset:
        return "GMT"
    total_minutes = int(offset.total_seconds() // 60)
    sign = "+" if total_minutes >= 0 else "-"
    hours, minutes = divmod(abs(total_minutes), 60)
    return f"GMT{sign}{hours:02d}:{minutes:02d}"


def short_zone_name(zone_name: str, local: datetime) -> str:
    """en-US short zone name: US zones keep EDT/PST, UTC stays UTC, others read GMT+9 or GMT+5:30."""
    if zone_name.startswith("America/") or zone_name == "UTC":
        return local.tzname() or "UTC"
    offset = local.utcoffset()
    if not offset:
        return "GMT"
    total_minutes = int(offset.total_seconds() // 60)
    sign = "+" if total_minutes >= 0 else "-"
    hours, minutes = divmod(abs(total_minutes), 60)
    return f"GMT{sign}{hours}:{minutes:02d}" if minutes else f"GMT{sign}{hours}"


def build_time_data(zone_name: str, now: datetime) -> TimeData:
    local = now.astimezone(ZoneInfo(zone_name))
    return TimeData(
        time=local.strftime("%H:%M:%S"),
        date=f"{local:%A}, {local:%B} {local.day}, {local.year}",
        datetime=f"{local:%m/%d/%Y, %H:%M:%S} {short_zone_name(zone_name, local)}",
        timezone=zone_name,
        unix_timestamp=int(local.timestamp()),
        utc_offset=format_utc_offset(local.utcoffset()),
    )


def get_current_time(
    timezone: Any = None,
    format: Any = "full",
    now: Optional[datetime] = None,
) -> ToolResult[TimeData]:
    """
    Current time in `timezone`. All representations are always in data;
    `format` (full/date/time) only picks which one becomes display_value.
    """
    zone_name = resolve_timezone(timezone)
    moment = now or datetime.now(dt_timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=dt_timezone.utc)

    try:
        data = build_time_data(zone_name, moment)
    except Exception as e:
        logger.error("time_lookup_failed: %s", e)
        return ToolResult(
            success=False,
            error=f"Failed to retrieve time information: {e}",
            data=ToolFailure(
                tool="get_current_time",
                source=ErrorSource.UNEXPECTED.value,
                details={"timezone": zone_name, "format": format if format in TIME_FORMATS else "full"},
            ),
        )

    if format == "date":
        display_value = data.date
    elif format == "time":
        display_value = data.time
    else:
        display_value = data.datetime
    return ToolResult(success=True, data=data, display_value=display_value)
