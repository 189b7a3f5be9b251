from datetime import datetime

from masjid_go.models.poi import PointOfInterest


def detect_prayer_time(poi: PointOfInterest, at: datetime) -> tuple[bool, str | None]:
    """Whether `at` falls inside a congregational prayer window at `poi`.

    Prayer-time computation is not available yet, so no visit qualifies for the
    prayer bonus.
    """
    return False, None
