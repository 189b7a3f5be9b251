"""Points and streak rules for visits."""
from dataclasses import dataclass
from datetime import date

from masjid_go.models.enums import VisitStatus


# Points configuration
BASE_VISIT_COMPLETED = 10
BASE_VISIT_INCOMPLETE = 5
FIRST_VISIT_BONUS = 5
PRAYER_TIME_BONUS = 10


@dataclass(frozen=True)
class CheckoutScore:
    status: VisitStatus
    base_points: int
    bonus_points: int
    points_awarded: int


@dataclass(frozen=True)
class StreakState:
    current_streak: int
    longest_streak: int


def checkin_points(is_first_visit: bool, is_prayer_time: bool) -> tuple[int, int]:
    """Provisional (base, bonus) captured when a visit opens."""
    bonus = (FIRST_VISIT_BONUS if is_first_visit else 0) + (PRAYER_TIME_BONUS if is_prayer_time else 0)
    return BASE_VISIT_COMPLETED, bonus


def checkout_score(checkout_in_proximity: bool, bonus_points: int) -> CheckoutScore:
    """Final score of a visit. The check-in bonus is kept even for an incomplete exit."""
    if checkout_in_proximity:
        status, base = VisitStatus.COMPLETED, BASE_VISIT_COMPLETED
    else:
        status, base = VisitStatus.INCOMPLETE, BASE_VISIT_INCOMPLETE
    return CheckoutScore(
        status=status,
        base_points=base,
        bonus_points=bonus_points,
        points_awarded=base + bonus_points,
    )


def next_streak(
    current_streak: int,
    longest_streak: int,
    last_visit_day: date | None,
    visit_day: date,
) -> StreakState:
    if last_visit_day is None:
        return StreakState(current_streak=1, longest_streak=max(longest_streak, 1))

    gap = (visit_day - last_visit_day).days
    if gap == 1:
        streak = current_streak + 1
        return StreakState(current_streak=streak, longest_streak=max(streak, longest_streak))
    if gap > 1:
        return StreakState(current_streak=1, longest_streak=max(longest_streak, 1))
    # Same day (or clock skew): unchanged
    return StreakState(current_streak=current_streak, longest_streak=longest_streak)
