"""
Platform posting-time reference data and time-of-day helpers.

Minutes since midnight is the canonical representation for every
comparison; display strings are always ``H:MM AM|PM``.
"""

import re
from enum import Enum
from typing import Dict, List, NamedTuple, Tuple, Union

from ..models.core import DAYS, Platform

MINUTES_PER_DAY = 24 * 60

_TIME_PATTERN = re.compile(r"(\d+):?(\d*)\s*(AM|PM)?", re.IGNORECASE)


class OptimalTimes(NamedTuple):
    best_times: List[str]
    best_days: List[str]


# Research-based engagement windows per platform.
PLATFORM_OPTIMAL_TIMES: Dict[str, OptimalTimes] = {
    Platform.TIKTOK.value: OptimalTimes(
        ["7:00 AM", "12:00 PM", "7:00 PM", "10:00 PM"], ["Tuesday", "Thursday", "Saturday"]
    ),
    Platform.SHORTS.value: OptimalTimes(
        ["10:00 AM", "2:00 PM", "6:00 PM"], ["Wednesday", "Friday", "Saturday"]
    ),
    Platform.REELS.value: OptimalTimes(
        ["11:00 AM", "3:00 PM", "8:00 PM"], ["Monday", "Wednesday", "Friday"]
    ),
    Platform.FACEBOOK.value: OptimalTimes(
        ["9:00 AM", "1:00 PM", "5:00 PM"], ["Tuesday", "Thursday"]
    ),
    Platform.LINKEDIN.value: OptimalTimes(
        ["8:00 AM", "12:00 PM"], ["Tuesday", "Wednesday", "Thursday"]
    ),
    Platform.SNAPCHAT.value: OptimalTimes(
        ["4:00 PM", "9:00 PM"], ["Friday", "Saturday"]
    ),
    Platform.YTLONG.value: OptimalTimes(
        ["2:00 PM", "4:00 PM"], ["Thursday", "Saturday", "Sunday"]
    ),
}


def platform_key(platform: Union[Platform, str]) -> str:
    if isinstance(platform, Enum):
        return platform.value
    return str(platform).lower()


def get_platform_times(platform: Union[Platform, str]) -> OptimalTimes:
    """
    Look up the optimal-time data for a platform.

    Raises:
        KeyError: If the platform has no reference data
    """
    key = platform_key(platform)
    try:
        return PLATFORM_OPTIMAL_TIMES[key]
    except KeyError:
        raise KeyError(f"No optimal posting times for platform '{key}'") from None


def parse_time_to_minutes(time_str: str) -> int:
    """
    Parse "7:00 AM", "7am", "12:30pm" or "19:30" into minutes since midnight.

    Unparseable input yields 0.
    """
    match = _TIME_PATTERN.search(time_str or "")
    if not match:
        return 0

    hours = int(match.group(1))
    minutes = int(match.group(2) or "0")
    period = (match.group(3) or "").upper()

    if period == "PM" and hours != 12:
        hours += 12
    if period == "AM" and hours == 12:
        hours = 0

    return hours * 60 + minutes


def minutes_to_time_string(minutes: int) -> str:
    """Format minutes since midnight as a 12-hour clock string, wrapping past midnight."""
    total = minutes % MINUTES_PER_DAY
    hours, mins = divmod(total, 60)
    period = "PM" if hours >= 12 else "AM"

    if hours == 0:
        hours = 12
    elif hours > 12:
        hours -= 12

    return f"{hours}:{mins:02d} {period}"


def slot_key(day: str, time_str: str) -> Tuple[str, int]:
    """Collision key for a posting slot."""
    return day, parse_time_to_minutes(time_str)


def is_valid_day(day: str) -> bool:
    return day in DAYS


def get_optimal_time_for_platform(platform: Union[Platform, str], day: str) -> str:
    """
    Pick a posting time for ``platform`` on ``day``.

    On one of the platform's best days this is its headline best time;
    on any other day the middle of its best-times list, a versatile slot
    that performs acceptably across the week.
    """
    data = get_platform_times(platform)
    if day in data.best_days:
        return data.best_times[0]
    return data.best_times[len(data.best_times) // 2]


def is_optimal_time(platform: Union[Platform, str], time_str: str) -> bool:
    """True when ``time_str`` is within an hour of one of the platform's best times."""
    minutes = parse_time_to_minutes(time_str)
    return any(
        abs(minutes - parse_time_to_minutes(best)) < 60
        for best in get_platform_times(platform).best_times
    )


def is_optimal_day(platform: Union[Platform, str], day: str) -> bool:
    return day in get_platform_times(platform).best_days
