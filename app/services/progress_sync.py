"""
Progress Synchronizer
Keeps one active checklist's checked-set and check history consistent across
the local mirror, the persisted device_progress rows and live changes made by
other inspectors.

Remote is authoritative once loaded; after that, concurrent edits resolve by
last upsert wins. Live changes update the checked-set only: history is this
viewer's own undo stack.
"""
import asyncio
import enum
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional

from app.core.exceptions import GatewayError
from app.schemas.progress import ProgressSnapshot
from app.services.change_feed import ChangeFeed, Subscription
from app.services.gateway import ChecklistGateway, PROGRESS_TABLE
from app.services.local_mirror import LocalMirror

logger = logging.getLogger(__name__)

LOAD_FAILED_MESSAGE = "Could not load shared progress. Using local device state."
SYNC_FAILED_MESSAGE = "Could not sync this device to the cloud. Local state only."

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class SyncState(str, enum.Enum):
    """Lifecycle of one checklist activation"""
    UNLOADED = "unloaded"
    LOADING = "loading"
    SYNCED = "synced"
    LOCAL_ONLY = "local_only"


def log_notification(message: str, level: str = "info"):
    """Default notifier: user-facing warnings go to the log"""
    log = getattr(logger, level, None)
    if not callable(log):
        log = logger.info
    log(message)


def _as_timestamp(value: Any) -> datetime:
    """updated_at as an aware datetime (naive values are taken as UTC)"""
    if value is None:
        return _EPOCH
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


class ProgressSynchronizer:
    """
    Owns the checked-set for the active checklist.

    Args:
        gateway: persistence gateway used for progress reads and upserts
        mirror: local snapshot store
        change_feed: live feed to subscribe to (defaults to the gateway's feed)
        notify: callable(message, level) for non-blocking user warnings
        on_change: callable(synchronizer) invoked after every state change
    """

    def __init__(
        self,
        gateway: ChecklistGateway,
        mirror: LocalMirror,
        change_feed: Optional[ChangeFeed] = None,
        notify: Optional[Callable[[str, str], None]] = None,
        on_change: Optional[Callable[["ProgressSynchronizer"], None]] = None,
    ):
        self.gateway = gateway
        self.mirror = mirror
        self.change_feed = change_feed if change_feed is not None else gateway.change_feed
        self.notify = notify if notify is not None else log_notification
        self.on_change = on_change

        self.checklist_id = None
        self.state = SyncState.UNLOADED
        # dict used as an insertion-ordered set
        self._checked: Dict[str, None] = {}
        self._history: List[str] = []
        self._subscription: Optional[Subscription] = None
        self._consumer: Optional[asyncio.Task] = None
        # Bumped on every activate / deactivate; a load finishing under an older value is stale
        self._generation = 0

    # ------------------------------------------------------------------
    # read side
    # ------------------------------------------------------------------

    @property
    def checked(self) -> frozenset:
        return frozenset(self._checked)

    @property
    def history(self) -> tuple:
        return tuple(self._history)

    @property
    def subscribed(self) -> bool:
        return self._subscription is not None

    def is_checked(self, device_uid: str) -> bool:
        return device_uid in self._checked

    def last_checked(self) -> Optional[str]:
        return self._history[-1] if self._history else None

    def snapshot(self) -> ProgressSnapshot:
        return ProgressSnapshot(checked=list(self._checked), history=list(self._history))

    # ------------------------------------------------------------------
    # activation
    # ------------------------------------------------------------------

    async def activate(self, checklist_id) -> SyncState:
        """Load progress for a checklist and start listening for live changes."""
        await self.deactivate()
        generation = self._generation

        self.checklist_id = checklist_id
        self._checked = {}
        self._history = []
        self.state = SyncState.LOADING

        try:
            rows = await self.gateway.list_progress(checklist_id)
        except GatewayError as e:
            if generation != self._generation:
                return self.state
            logger.error(f"Failed to load progress for checklist {checklist_id}: {e}")
            self.notify(LOAD_FAILED_MESSAGE, "error")
            self._load_local()
        else:
            if generation != self._generation:
                logger.debug(f"Discarding stale progress load for checklist {checklist_id}")
                return self.state
            if rows:
                self._load_remote(rows)
            else:
                # No cloud data yet, fall back to whatever is on this device
                self._load_local()

        self._subscribe()
        self._changed()
        return self.state

    async def deactivate(self):
        """Tear down the live subscription. Safe to call when nothing is open."""
        self._generation += 1
        subscription, consumer = self._subscription, self._consumer
        self._subscription = None
        self._consumer = None

        if subscription is not None:
            subscription.close()
        if consumer is not None and consumer is not asyncio.current_task():
            consumer.cancel()
            try:
                await consumer
            except asyncio.CancelledError:
                pass

        if self.checklist_id is not None:
            logger.debug(f"Stopped listening to progress for checklist {self.checklist_id}")
        self.checklist_id = None
        self.state = SyncState.UNLOADED

    def _load_local(self):
        snapshot = self.mirror.load(self.checklist_id)
        if snapshot is not None:
            self._checked = dict.fromkeys(snapshot.checked)
            self._history = list(snapshot.history)
        else:
            self._checked = {}
            self._history = []
        self.state = SyncState.LOCAL_ONLY
        logger.info(f"Checklist {self.checklist_id}: using local progress ({len(self._checked)} checked)")

    def _load_remote(self, rows: Iterable[Dict[str, Any]]):
        # updated_at approximates check order for the devices currently checked
        checked_rows = sorted(
            (row for row in rows if row.get("checked")),
            key=lambda row: _as_timestamp(row.get("updated_at")),
        )

        checked: Dict[str, None] = {}
        history: List[str] = []
        for row in checked_rows:
            device_uid = row.get("device_uid")
            if not device_uid:
                continue
            checked[device_uid] = None
            history.append(device_uid)

        self._checked = checked
        self._history = history
        self.state = SyncState.SYNCED
        self._save_local()
        logger.info(f"Checklist {self.checklist_id}: loaded shared progress ({len(checked)} checked)")

    def _subscribe(self):
        if self._subscription is not None:
            self._subscription.close()
        if self._consumer is not None:
            self._consumer.cancel()
        self._subscription = self.change_feed.subscribe(PROGRESS_TABLE, self.checklist_id)
        self._consumer = asyncio.create_task(self._consume(self._subscription))
        logger.info(f"Realtime subscribed for checklist {self.checklist_id}")

    async def _consume(self, subscription: Subscription):
        async for event in subscription:
            try:
                self.apply_change(event.new)
            finally:
                subscription.queue.task_done()

    async def wait_for_pending_changes(self):
        """Wait until every live change queued so far has been applied."""
        if self._subscription is not None:
            await self._subscription.queue.join()

    # ------------------------------------------------------------------
    # write path
    # ------------------------------------------------------------------

    async def set_checked(self, device_uid: str, checked: bool) -> bool:
        """
        Record a user check / uncheck and write it through.

        Local state and the mirror change immediately; the store is updated
        afterwards. Returns False when the upsert failed, in which case local
        state is kept as is.
        """
        if self.checklist_id is None:
            raise RuntimeError("No checklist is active")
        checklist_id = self.checklist_id

        if checked:
            self._checked[device_uid] = None
            self._history.append(device_uid)
        else:
            self._checked.pop(device_uid, None)
            self._remove_last_from_history(device_uid)

        self._save_local()
        self._changed()

        try:
            await self.gateway.upsert_progress(checklist_id, device_uid, checked)
        except GatewayError as e:
            logger.error(f"Failed to save progress for {device_uid}: {e}")
            self.notify(SYNC_FAILED_MESSAGE, "error")
            return False
        return True

    async def toggle(self, device_uid: str) -> bool:
        """Flip one device's checked flag."""
        return await self.set_checked(device_uid, device_uid not in self._checked)

    def _remove_last_from_history(self, device_uid: str):
        for index in range(len(self._history) - 1, -1, -1):
            if self._history[index] == device_uid:
                del self._history[index]
                return

    def clear_all(self):
        """Clear every checkmark on this device. Not written to the store."""
        self._checked = {}
        self._history = []
        self._save_local()
        self._changed()
        self.notify("All device checkmarks cleared.", "warning")

    # ------------------------------------------------------------------
    # live-update path
    # ------------------------------------------------------------------

    def apply_change(self, row: Optional[Dict[str, Any]]) -> bool:
        """
        Apply one change notification (the new row image).
        Returns False when the row was ignored.
        """
        if not row or self.checklist_id is None:
            return False
        if row.get("checklist_id") != self.checklist_id:
            return False

        device_uid = row.get("device_uid")
        if not device_uid:
            return False

        was_checked = device_uid in self._checked
        if row.get("checked"):
            if not was_checked:
                self._checked[device_uid] = None
        elif was_checked:
            del self._checked[device_uid]

        self._save_local()
        self._changed()
        return True

    # ------------------------------------------------------------------

    def _save_local(self):
        self.mirror.save(self.checklist_id, self.snapshot())

    def _changed(self):
        if self.on_change is not None:
            self.on_change(self)
