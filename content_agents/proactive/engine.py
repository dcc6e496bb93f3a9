"""
Proactive trigger engine.

Watches host content, the run manager's running state and its history,
and launches agents when one of the fixed triggers holds. Evaluation is
debounced behind a single timer. Runs the engine launched are
recognised in history by a time-windowed claim and surfaced as
notifications.
"""

import asyncio
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Set

from ..models.core import (
    AgentResultEntry,
    ContentItem,
    PendingClaim,
    ProactiveNotification,
    ensure_utc,
    utc_now,
)
from ..orchestration.run_manager import RunManager
from ..utils.config import SystemConfig, get_config
from ..utils.logging import get_logger
from .triggers import ProactiveTrigger, SchedulerTrigger, TriggerSnapshot, extract_summary


class ProactiveEngine:
    """
    Launches agents on its own, at most once per trigger per engine lifetime.

    Attribution pairs a new history entry with a pending claim for the
    same agent when the two timestamps are within the claim window. If
    two different launches land in the same window for the same agent the
    pairing can be wrong; that approximation is accepted.
    """

    def __init__(
        self,
        run_manager: RunManager,
        config: Optional[SystemConfig] = None,
        triggers: Optional[List[ProactiveTrigger]] = None,
    ):
        self.run_manager = run_manager
        self.config = config or get_config()
        self.logger = get_logger(f"{__name__}.ProactiveEngine")

        proactive = self.config.proactive
        self.debounce_seconds = proactive.debounce_seconds
        self.claim_window = timedelta(seconds=proactive.claim_window_seconds)
        self.triggers: List[ProactiveTrigger] = triggers if triggers is not None else [
            SchedulerTrigger(
                cooldown=timedelta(seconds=proactive.scheduler_cooldown_seconds),
                min_items=proactive.scheduler_min_items,
            )
        ]

        self._content_items: List[ContentItem] = []
        self._previous_content_count = 0
        self._last_run_timestamps: Dict[str, datetime] = {}
        self._pending_claims: Dict[str, PendingClaim] = {}
        self._notifications: List[ProactiveNotification] = []
        self._timer: Optional[asyncio.TimerHandle] = None
        self._background_tasks: Set[asyncio.Task] = set()
        self._started = False
        self._stopped = False

    async def initialize(self) -> None:
        """Load persisted last-run timestamps and start watching the run manager."""
        self._last_run_timestamps = {
            agent_id: ensure_utc(timestamp)
            for agent_id, timestamp in (await self.run_manager.history_store.load_last_runs()).items()
        }
        if not self._started:
            self.run_manager.add_history_listener(self._on_history_added)
            self.run_manager.add_running_listener(self._on_running_changed)
            self._started = True
        self._stopped = False
        self.logger.info("Proactive engine initialized", triggers=[trigger.key for trigger in self.triggers])

    # ------------------------------------------------------------------
    # Observables
    # ------------------------------------------------------------------

    @property
    def notifications(self) -> List[ProactiveNotification]:
        return list(self._notifications)

    @property
    def last_run_timestamps(self) -> Dict[str, datetime]:
        return dict(self._last_run_timestamps)

    @property
    def pending_claims(self) -> Dict[str, PendingClaim]:
        return dict(self._pending_claims)

    @property
    def evaluation_scheduled(self) -> bool:
        return self._timer is not None

    def get_trigger(self, agent_id: str) -> Optional[ProactiveTrigger]:
        return next((trigger for trigger in self.triggers if trigger.key == agent_id), None)

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------

    def update_content_items(self, items: Iterable[ContentItem]) -> None:
        """Record the host's current content and re-schedule evaluation."""
        self._content_items = list(items)
        self.schedule_evaluation()

    def schedule_evaluation(self) -> None:
        """(Re)start the debounce timer; only the latest request survives."""
        if self._stopped:
            return
        if self._timer is not None:
            self._timer.cancel()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.debounce_seconds, self._on_timer)

    def _on_timer(self) -> None:
        self._timer = None
        self.evaluate()

    def _on_running_changed(self, running: bool) -> None:
        self.schedule_evaluation()

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def _snapshot(self) -> TriggerSnapshot:
        return TriggerSnapshot(
            content_items=list(self._content_items),
            previous_content_count=self._previous_content_count,
            last_run_timestamps=dict(self._last_run_timestamps),
            now=utc_now(),
            is_running=self.run_manager.is_running,
        )

    def evaluate(self) -> Optional[str]:
        """
        Check every trigger once and launch the first that holds.

        Returns:
            str: Agent id that was launched, or None
        """
        if self._stopped or self.run_manager.is_running:
            return None

        snapshot = self._snapshot()
        self._expire_claims(snapshot.now)
        for trigger in self.triggers:
            trigger.refresh(snapshot)
            if not trigger.should_fire(snapshot):
                continue

            if self._launch(trigger, snapshot):
                self._previous_content_count = snapshot.content_count
                return trigger.key

        self._previous_content_count = snapshot.content_count
        return None

    def _launch(self, trigger: ProactiveTrigger, snapshot: TriggerSnapshot) -> bool:
        trigger.mark_pending()
        self._pending_claims[trigger.key] = PendingClaim(timestamp=snapshot.now, trigger_reason=trigger.reason)

        task = self.run_manager.start_agent(trigger.agent_id, trigger.build_input(snapshot))
        if task is None:
            self._pending_claims.pop(trigger.key, None)
            trigger.mark_rejected()
            self.logger.warning("Proactive launch rejected", agent_id=trigger.key)
            return False

        trigger.mark_fired()
        self.logger.info("Proactive run launched", agent_id=trigger.key, trigger_reason=trigger.reason,
                         content_count=snapshot.content_count)
        return True

    # ------------------------------------------------------------------
    # History tracking and attribution
    # ------------------------------------------------------------------

    def _on_history_added(self, entries: List[AgentResultEntry]) -> None:
        timestamps_changed = False
        now = utc_now()

        for entry in entries:
            entry_time = ensure_utc(entry.timestamp)
            if entry.status == "completed":
                self._last_run_timestamps[entry.agent_id] = entry_time
                timestamps_changed = True

            claim = self._pending_claims.get(entry.agent_id)
            if claim is None:
                continue

            if abs(entry_time - claim.timestamp) < self.claim_window:
                self._claim(entry, claim)
            elif now - claim.timestamp >= self.claim_window:
                self._pending_claims.pop(entry.agent_id, None)
                self.logger.info("Discarding expired proactive claim", agent_id=entry.agent_id)

        if timestamps_changed:
            self._track(self.run_manager.history_store.save_last_runs(dict(self._last_run_timestamps)))

        self.schedule_evaluation()

    def _expire_claims(self, now: datetime) -> None:
        # A cancelled run leaves no history entry to consume its claim.
        for agent_id, claim in list(self._pending_claims.items()):
            if now - claim.timestamp < self.claim_window:
                continue
            self._pending_claims.pop(agent_id, None)
            trigger = self.get_trigger(agent_id)
            if trigger is not None:
                trigger.mark_expired()
            self.logger.info("Discarding expired proactive claim", agent_id=agent_id)

    def _claim(self, entry: AgentResultEntry, claim: PendingClaim) -> None:
        self._pending_claims.pop(entry.agent_id, None)

        notification = ProactiveNotification(
            id=f"proactive-{entry.id}",
            agent_id=entry.agent_id,
            timestamp=entry.timestamp,
            trigger_reason=claim.trigger_reason,
            summary=extract_summary(entry.agent_id, entry.output),
        )
        self._notifications.insert(0, notification)

        trigger = self.get_trigger(entry.agent_id)
        if trigger is not None:
            trigger.mark_finished(entry.status == "completed")

        self._track(self.run_manager.mark_proactive(entry.id, claim.trigger_reason))
        self.logger.info("Proactive run attributed", agent_id=entry.agent_id, entry_id=entry.id,
                         status=entry.status)

    def _track(self, coro) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def dismiss_notification(self, notification_id: str) -> None:
        self._notifications = [
            notification.model_copy(update={"dismissed": True}) if notification.id == notification_id
            else notification
            for notification in self._notifications
        ]

    def clear_notifications(self) -> None:
        self._notifications = []

    async def flush(self) -> None:
        """Wait for pending persistence work."""
        if self._background_tasks:
            await asyncio.gather(*list(self._background_tasks))

    async def shutdown(self) -> None:
        """Stop watching the run manager and finish pending persistence work."""
        self._stopped = True
        if self._started:
            self.run_manager.remove_history_listener(self._on_history_added)
            self.run_manager.remove_running_listener(self._on_running_changed)
            self._started = False
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        await self.flush()
        self.logger.info("Proactive engine stopped")
