"""
Schedule analysis: how well a calendar uses each platform's optimal slots.

Hosts run this to fill ``AgentContext.scheduling_analysis``.
"""

import math
from typing import Dict, List, Optional

from ..models.core import ContentItem, SchedulingAnalysis, SchedulingSuggestion
from .optimal_times import (
    get_platform_times,
    is_optimal_day,
    is_optimal_time,
    parse_time_to_minutes,
)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def time_difference_hours(first: str, second: str) -> float:
    return abs(parse_time_to_minutes(first) - parse_time_to_minutes(second)) / 60


def find_closest_optimal_time(platform: str, current_time: str) -> str:
    """Return the platform best time nearest to ``current_time`` (first wins ties)."""
    best_times = get_platform_times(platform).best_times
    return min(best_times, key=lambda candidate: time_difference_hours(current_time, candidate))


def _nearest_optimal_gap(platform: str, time_str: str) -> float:
    return min(time_difference_hours(time_str, best) for best in get_platform_times(platform).best_times)


def calculate_confidence(
    platform: str,
    current_time: str,
    current_day: str,
    suggested_time: str,
    suggested_day: Optional[str] = None,
) -> int:
    """Score (capped at 95) how much a suggested move improves on the current slot."""
    confidence = 50.0

    improvement = _nearest_optimal_gap(platform, current_time) - _nearest_optimal_gap(platform, suggested_time)
    confidence += min(improvement * 10, 30)

    if suggested_day and is_optimal_day(platform, suggested_day) and not is_optimal_day(platform, current_day):
        confidence += 15

    if is_optimal_time(platform, suggested_time):
        confidence += 5

    return min(_round_half_up(confidence), 95)


def generate_suggestions(items: List[ContentItem]) -> List[SchedulingSuggestion]:
    """
    Suggest better slots for unposted items, highest confidence first.

    Items already on an optimal day and time are left alone, as are items
    whose best alternative is less than half an hour away on the same day.
    """
    suggestions: List[SchedulingSuggestion] = []

    for item in items:
        if item.posted:
            continue

        platform = item.platform
        if is_optimal_time(platform, item.time) and is_optimal_day(platform, item.day):
            continue

        suggested_time = find_closest_optimal_time(platform, item.time)
        suggested_day = None
        if not is_optimal_day(platform, item.day):
            suggested_day = get_platform_times(platform).best_days[0]

        time_diff = time_difference_hours(item.time, suggested_time)
        if time_diff < 0.5 and not suggested_day:
            continue

        reasoning = ""
        if time_diff >= 1:
            reasoning = f"{platform} content performs best at {suggested_time}"
        if suggested_day:
            reasoning += f". {suggested_day}" if reasoning else suggested_day
            reasoning += f" is a high-engagement day for {platform}"
        if not reasoning:
            reasoning = "Slight time optimization for better reach"

        suggestions.append(SchedulingSuggestion(
            item_id=item.id,
            platform=platform,
            current_time=item.time,
            current_day=item.day,
            suggested_time=suggested_time,
            suggested_day=suggested_day,
            confidence=calculate_confidence(platform, item.time, item.day, suggested_time, suggested_day),
            reasoning=reasoning,
        ))

    return sorted(suggestions, key=lambda suggestion: suggestion.confidence, reverse=True)


def calculate_time_distribution(items: List[ContentItem]) -> Dict[str, int]:
    distribution: Dict[str, int] = {}
    for item in items:
        distribution[item.time] = distribution.get(item.time, 0) + 1
    return distribution


def calculate_optimal_distribution(items: List[ContentItem]) -> Dict[str, int]:
    """Spread each item evenly over its platform's best times, scaled back to item counts."""
    weights: Dict[str, float] = {}
    for item in items:
        best_times = get_platform_times(item.platform).best_times
        for best in best_times:
            weights[best] = weights.get(best, 0.0) + 1 / len(best_times)

    total = sum(weights.values())
    if not total:
        return {}
    return {slot: _round_half_up(weight / total * len(items)) for slot, weight in weights.items()}


def calculate_schedule_score(items: List[ContentItem]) -> int:
    """Percentage of unposted items on optimal slots; half credit for day-only or time-only."""
    unposted = [item for item in items if not item.posted]
    if not unposted:
        return 100

    optimal = 0.0
    for item in unposted:
        time_ok = is_optimal_time(item.platform, item.time)
        day_ok = is_optimal_day(item.platform, item.day)
        if time_ok and day_ok:
            optimal += 1
        elif time_ok or day_ok:
            optimal += 0.5

    return _round_half_up(optimal / len(unposted) * 100)


def analyze_schedule(items: List[ContentItem]) -> SchedulingAnalysis:
    """Analyze the current schedule and return suggestions plus distribution figures."""
    return SchedulingAnalysis(
        suggestions=generate_suggestions(items),
        current_distribution=calculate_time_distribution(items),
        optimal_distribution=calculate_optimal_distribution(items),
        overall_score=calculate_schedule_score(items),
    )
