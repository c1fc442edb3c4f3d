"""
Periodic check of the listing feed.

Each cycle fetches the newest listings, records the ids that have not been
seen before, and sends one message per new listing to every registered
chat. Failures are collected into a ``CycleReport`` rather than raised, and
the job callback logs that report and carries on to the next tick.
"""

import enum
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Set

from telegram.ext import ContextTypes

from .errors import DeliveryError, FetchError, StoreError
from .feed import FeedClient
from .notifier import Notifier
from .stores import RecipientStore, SeenListingStore

logger = logging.getLogger(__name__)


class PollState(enum.Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    DIFFING = "diffing"
    NOTIFYING = "notifying"
    SLEEPING = "sleeping"
    STOPPED = "stopped"


@dataclass
class CycleReport:
    """What happened during one poll cycle."""

    fetched: List[int] = field(default_factory=list)
    new_ids: List[int] = field(default_factory=list)
    notifications_sent: int = 0
    primed: bool = False
    fetch_error: Optional[FetchError] = None
    store_errors: List[StoreError] = field(default_factory=list)
    delivery_errors: List[DeliveryError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not (self.fetch_error or self.store_errors or self.delivery_errors)

    def log(self) -> None:
        """Write the outcome of the cycle to the log."""
        if self.fetch_error is not None:
            logger.error("Skipping cycle, feed fetch failed: %s", self.fetch_error)
            return
        for error in self.store_errors:
            logger.error("Store error: %s", error)
        for error in self.delivery_errors:
            logger.warning("Delivery error: %s", error)
        if self.primed:
            logger.info(
                "First run: recorded %d listings without notifying", len(self.new_ids)
            )
        elif self.new_ids:
            logger.info(
                "Found %d new listing(s) %s, sent %d notification(s)",
                len(self.new_ids),
                self.new_ids,
                self.notifications_sent,
            )
        else:
            logger.debug("No new listings among %d fetched", len(self.fetched))


class PollLoop:
    """Fetch, diff against the seen store, persist and notify."""

    def __init__(
        self,
        feed: FeedClient,
        seen: SeenListingStore,
        recipients: RecipientStore,
        notifier: Notifier,
        silent_first_run: bool = False,
    ) -> None:
        self.feed = feed
        self.seen = seen
        self.recipients = recipients
        self.notifier = notifier
        self.silent_first_run = silent_first_run
        self.state = PollState.IDLE
        self._stopped = False

    def _enter(self, state: PollState) -> None:
        # an in-flight cycle may finish after stop(), but STOPPED is terminal
        if not self._stopped:
            self.state = state

    async def run_cycle(self) -> CycleReport:
        """Run one fetch/diff/notify pass. Never raises for recoverable errors."""
        report = CycleReport()
        if self._stopped:
            return report

        self._enter(PollState.IDLE)
        self._enter(PollState.FETCHING)
        try:
            report.fetched = await self.feed.fetch()
        except FetchError as e:
            report.fetch_error = e
            self._enter(PollState.SLEEPING)
            return report

        self._enter(PollState.DIFFING)
        try:
            first_run = self.silent_first_run and self.seen.count() == 0
        except StoreError as e:
            report.store_errors.append(e)
            self._enter(PollState.SLEEPING)
            return report
        report.new_ids = self._record_new_ids(report.fetched, report)

        if first_run:
            report.primed = True
        else:
            self._enter(PollState.NOTIFYING)
            await self._notify_new_ids(report.new_ids, report)

        self._enter(PollState.SLEEPING)
        return report

    def _record_new_ids(self, fetched: List[int], report: CycleReport) -> List[int]:
        """Persist unseen ids and return them in feed order."""
        handled: Set[int] = set()
        new_ids: List[int] = []
        for listing_id in fetched:
            if listing_id in handled:
                continue
            handled.add(listing_id)
            try:
                if self.seen.contains(listing_id):
                    continue
                self.seen.add(listing_id)
            except StoreError as e:
                report.store_errors.append(e)
                continue
            new_ids.append(listing_id)
        return new_ids

    async def _notify_new_ids(self, new_ids: List[int], report: CycleReport) -> None:
        for listing_id in new_ids:
            try:
                recipients = self.recipients.list_all()
            except StoreError as e:
                report.store_errors.append(e)
                continue
            result = await self.notifier.broadcast(
                recipients, self.notifier.listing_message(listing_id)
            )
            report.notifications_sent += result.sent
            report.delivery_errors.extend(result.failures)

    async def run_job(self, context: Optional[ContextTypes.DEFAULT_TYPE] = None) -> None:
        """JobQueue callback: one cycle per tick, logged, never raising."""
        try:
            report = await self.run_cycle()
        except Exception:
            # anything unexpected still must not kill the job queue
            logger.exception("Unexpected error during poll cycle")
            self._enter(PollState.SLEEPING)
            return
        report.log()

    def stop(self) -> None:
        """Mark the loop as stopped; later cycles become no-ops."""
        self._stopped = True
        self.state = PollState.STOPPED
        logger.info("Poll loop stopped")
