"""
Scheduler agent: assigns optimal posting times, resolves slot collisions
and balances content across the week.

Pure computation; it never calls out and its pre-flight check always passes.
"""

import math
from typing import Any, Dict, List, Tuple

from ..models.core import (
    DAYS,
    AgentContext,
    AgentId,
    DraftItem,
    SchedulerInput,
    SchedulerOutput,
)
from ..scheduling.optimal_times import (
    get_optimal_time_for_platform,
    get_platform_times,
    is_valid_day,
    minutes_to_time_string,
    parse_time_to_minutes,
    slot_key,
)
from .base import AgentCallbacks, AgentDefinition

STEP_ASSIGN = "assign-times"
STEP_RESOLVE = "resolve-conflicts"
STEP_DISTRIBUTE = "distribute"

CANCELLED_SUMMARY = "Cancelled."


def assign_optimal_times(items: List[DraftItem]) -> int:
    """
    Give every item a valid day and its platform's optimal time for that day.

    Items without a recognised day are spread round-robin over the week by
    list position.

    Returns:
        int: Number of items assigned
    """
    for index, item in enumerate(items):
        if not is_valid_day(item.day):
            item.day = DAYS[index % len(DAYS)]
        item.time = get_optimal_time_for_platform(item.platform, item.day)
    return len(items)


def resolve_conflicts(items: List[DraftItem]) -> int:
    """
    Move items that share an exact day and time onto distinct slots.

    The first item in each colliding group keeps its slot. Each later one
    takes the first of its platform's optimal times still free that day,
    or failing that shifts one hour per position in the group.

    Returns:
        int: Number of items moved
    """
    slot_map: Dict[Tuple[str, int], List[int]] = {}
    for index, item in enumerate(items):
        slot_map.setdefault(slot_key(item.day, item.time), []).append(index)

    resolved = 0
    for indices in list(slot_map.values()):
        if len(indices) <= 1:
            continue

        for position, index in enumerate(indices[1:], start=1):
            item = items[index]
            original_minutes = parse_time_to_minutes(item.time)

            for candidate in get_platform_times(item.platform).best_times:
                candidate_key = slot_key(item.day, candidate)
                if not slot_map.get(candidate_key):
                    item.time = candidate
                    slot_map.setdefault(candidate_key, []).append(index)
                    break
            else:
                item.time = minutes_to_time_string(original_minutes + position * 60)
                slot_map.setdefault(slot_key(item.day, item.time), []).append(index)

            resolved += 1

    return resolved


def count_per_day(items: List[DraftItem]) -> Dict[str, int]:
    counts = {day: 0 for day in DAYS}
    for item in items:
        counts[item.day] = counts.get(item.day, 0) + 1
    return counts


def balance_load(items: List[DraftItem]) -> Tuple[int, Dict[str, int]]:
    """
    Move items off days holding more than ``ceil(n / 7) + 1`` items.

    Excess items leave from the end of the list and go to whichever day
    currently has the fewest items, taking that day's optimal time.

    Returns:
        tuple: (items moved, final per-day counts)
    """
    counts = count_per_day(items)
    target = math.ceil(len(items) / len(DAYS))
    max_per_day = target + 1

    overloaded = sorted(
        (day for day, count in counts.items() if count > max_per_day),
        key=lambda day: counts[day],
        reverse=True,
    )

    redistributed = 0
    for over_day in overloaded:
        day_indices = [index for index, item in enumerate(items) if item.day == over_day]
        excess = counts[over_day] - target
        moved = 0

        for index in reversed(day_indices):
            if moved >= excess:
                break

            under_day = min(DAYS, key=lambda day: counts[day])
            if counts[under_day] >= target:
                break

            item = items[index]
            items[index] = item.model_copy(update={
                "day": under_day,
                "time": get_optimal_time_for_platform(item.platform, under_day),
            })
            counts[over_day] -= 1
            counts[under_day] += 1
            moved += 1
            redistributed += 1

    return redistributed, counts


def build_summary(items: List[DraftItem]) -> str:
    counts = count_per_day(items)
    distribution = ", ".join(f"{day}: {counts[day]}" for day in DAYS)
    return f"Scheduled {len(items)} items across the week. Distribution: {distribution}."


class SchedulerAgent(AgentDefinition):
    """Runs the assign, resolve and balance phases as three reported steps."""

    id = AgentId.SCHEDULER
    name = "Bernard"
    description = (
        "Assigns optimal posting times, resolves conflicts, and distributes "
        "content evenly across the week."
    )
    icon = "calendar"
    color = "text-teal-500"

    async def execute(self, input: Any, context: AgentContext, callbacks: AgentCallbacks) -> SchedulerOutput:
        scheduler_input = input if isinstance(input, SchedulerInput) else SchedulerInput.model_validate(input)
        items = [item.model_copy(deep=True) for item in scheduler_input.content_items]

        callbacks.on_step_start(STEP_ASSIGN, "Assigning optimal posting times")
        try:
            assigned = assign_optimal_times(items)
            callbacks.on_step_complete(STEP_ASSIGN, {"assigned_count": assigned})
        except Exception as e:
            callbacks.on_step_error(STEP_ASSIGN, str(e))

        if callbacks.should_cancel():
            return SchedulerOutput(scheduled_items=items, summary=CANCELLED_SUMMARY)

        callbacks.on_step_start(STEP_RESOLVE, "Resolving scheduling conflicts")
        try:
            resolved = resolve_conflicts(items)
            callbacks.on_step_complete(STEP_RESOLVE, {"conflicts_resolved": resolved})
        except Exception as e:
            callbacks.on_step_error(STEP_RESOLVE, str(e))

        if callbacks.should_cancel():
            return SchedulerOutput(scheduled_items=items, summary=CANCELLED_SUMMARY)

        callbacks.on_step_start(STEP_DISTRIBUTE, "Distributing content across the week")
        try:
            redistributed, final_counts = balance_load(items)
            callbacks.on_step_complete(STEP_DISTRIBUTE, {
                "redistributed": redistributed,
                "final_distribution": final_counts,
            })
        except Exception as e:
            callbacks.on_step_error(STEP_DISTRIBUTE, str(e))

        summary = build_summary(items)
        self.logger.info("Schedule built", item_count=len(items))
        return SchedulerOutput(scheduled_items=items, summary=summary)
