from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from masjid_go.config import settings


def get_app_timezone() -> ZoneInfo:
    try:
        return ZoneInfo(settings.APP_TIMEZONE)
    except ZoneInfoNotFoundError:
        return ZoneInfo("UTC")


def ensure_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes for timezone-aware columns.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def local_date(value: datetime) -> date:
    """Calendar day of an instant in the application timezone."""
    return ensure_utc(value).astimezone(get_app_timezone()).date()


def month_label(value: datetime) -> str:
    local = ensure_utc(value).astimezone(get_app_timezone())
    return f"{local.year}-{local.month:02d}"


def previous_month_label(value: datetime) -> str:
    local = ensure_utc(value).astimezone(get_app_timezone())
    if local.month == 1:
        return f"{local.year - 1}-12"
    return f"{local.year}-{local.month - 1:02d}"
