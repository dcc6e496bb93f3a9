"""Property-based tests for the scheduling phases and time helpers."""

import math

from hypothesis import given, settings, strategies as st

from content_agents.agents.scheduler_agent import assign_optimal_times, balance_load, resolve_conflicts
from content_agents.memory.history import prepend_entries
from content_agents.models.core import DAYS, AgentResultEntry, DraftItem, Platform
from content_agents.scheduling.optimal_times import (
    MINUTES_PER_DAY,
    minutes_to_time_string,
    parse_time_to_minutes,
)

drafts = st.lists(
    st.builds(
        DraftItem,
        platform=st.sampled_from([platform.value for platform in Platform]),
        day=st.sampled_from(list(DAYS) + ["", "Someday"]),
        time=st.sampled_from(["9:00 AM", "7:00 PM", ""]),
    ),
    min_size=0,
    max_size=40,
)


class TestSchedulingProperties:
    """Invariants that hold for any batch of drafts."""

    @given(minutes=st.integers(min_value=0, max_value=MINUTES_PER_DAY - 1))
    @settings(max_examples=200)
    def test_time_format_round_trip(self, minutes):
        """Property: formatting then parsing a time of day is lossless."""
        assert parse_time_to_minutes(minutes_to_time_string(minutes)) == minutes

    @given(items=drafts)
    @settings(max_examples=100, deadline=None)
    def test_phases_keep_every_item_on_a_real_day(self, items):
        """Property: no item is lost, and every item ends on a named day with a parseable time."""
        hooks = [item.hook for item in items]

        assign_optimal_times(items)
        resolve_conflicts(items)
        balance_load(items)

        assert [item.hook for item in items] == hooks
        for item in items:
            assert item.day in DAYS
            assert minutes_to_time_string(parse_time_to_minutes(item.time)) == item.time

    @given(items=drafts)
    @settings(max_examples=100, deadline=None)
    def test_balancing_caps_each_day(self, items):
        """Property: after balancing, no day holds more than ceil(n / 7) + 1 items."""
        assign_optimal_times(items)
        resolve_conflicts(items)

        _, counts = balance_load(items)

        if items:
            assert max(counts.values()) <= math.ceil(len(items) / len(DAYS)) + 1
        assert sum(counts.values()) == len(items)

    @given(
        existing=st.integers(min_value=0, max_value=40),
        added=st.integers(min_value=0, max_value=10),
        limit=st.integers(min_value=1, max_value=30),
    )
    @settings(max_examples=100)
    def test_history_never_exceeds_limit(self, existing, added, limit):
        """Property: prepending keeps the newest entries first and respects the cap."""
        def entry(entry_id):
            return AgentResultEntry(id=entry_id, agent_id="scheduler",
                                    timestamp="2026-03-02T09:00:00Z", status="completed")

        history = [entry(f"old-{index}") for index in range(existing)]
        new = [entry(f"new-{index}") for index in range(added)]

        result = prepend_entries(history, new, limit)

        assert len(result) == min(limit, existing + added)
        assert [e.id for e in result[:min(added, limit)]] == [e.id for e in new[:limit]]
