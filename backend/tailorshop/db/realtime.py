"""Change notifications for the storefront tables.

Writers never publish by hand: `ChangeFeed.attach` hooks a session factory so
that every committed transaction announces the tables it touched, once per
commit. Rolled back work is dropped silently.
"""
import logging
import threading
from itertools import count
from typing import Callable, Dict, FrozenSet, Iterable, Set, Tuple

from sqlalchemy import event
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[FrozenSet[str]], None]

_PENDING_KEY = "tailorshop.changed_tables"
_READY_KEY = "tailorshop.committed_tables"


class Subscription:
    """Handle returned by `ChangeFeed.subscribe`; release it on teardown."""

    def __init__(self, feed: "ChangeFeed", sub_id: int, tables: FrozenSet[str]):
        self._feed = feed
        self.id = sub_id
        self.tables = tables
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self._feed._remove(self.id)
            self.active = False

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc) -> None:
        self.unsubscribe()


class ChangeFeed:
    def __init__(self):
        self._lock = threading.Lock()
        self._subs: Dict[int, Tuple[FrozenSet[str], ChangeCallback]] = {}
        self._ids = count(1)

    def subscribe(self, tables: Iterable[str], on_change: ChangeCallback) -> Subscription:
        watched = frozenset(tables)
        if not watched:
            raise ValueError("subscribe() needs at least one table")
        sub_id = next(self._ids)
        with self._lock:
            self._subs[sub_id] = (watched, on_change)
        logger.debug("Subscribed id=%s tables=%s", sub_id, sorted(watched))
        return Subscription(self, sub_id, watched)

    def _remove(self, sub_id: int) -> None:
        with self._lock:
            self._subs.pop(sub_id, None)
        logger.debug("Unsubscribed id=%s", sub_id)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subs)

    def publish(self, tables: Iterable[str]) -> int:
        """Notify every subscriber watching any of `tables`. Returns how many were called."""
        changed = frozenset(tables)
        if not changed:
            return 0
        with self._lock:
            targets = [(sid, cb, watched & changed) for sid, (watched, cb) in self._subs.items() if watched & changed]
        logger.info("Change batch tables=%s subscribers=%s", sorted(changed), len(targets))
        for sub_id, callback, hit in targets:
            try:
                callback(hit)
            except Exception as e:
                logger.exception("Change callback failed for subscription id=%s: %s", sub_id, e)
        return len(targets)

    def attach(self, session_factory) -> None:
        """Wire the feed to a sessionmaker so commits publish their changed tables."""
        event.listen(session_factory, "after_flush", self._collect)
        event.listen(session_factory, "after_commit", self._mark_committed)
        event.listen(session_factory, "after_rollback", self._discard)
        event.listen(session_factory, "after_transaction_end", self._flush_committed)

    def _collect(self, session: Session, flush_context) -> None:
        pending: Set[str] = session.info.setdefault(_PENDING_KEY, set())
        for obj in list(session.new) + list(session.dirty) + list(session.deleted):
            table = getattr(obj, "__tablename__", None)
            if table:
                pending.add(table)

    def _mark_committed(self, session: Session) -> None:
        pending = session.info.pop(_PENDING_KEY, None)
        if pending:
            session.info.setdefault(_READY_KEY, set()).update(pending)

    def _flush_committed(self, session: Session, transaction) -> None:
        # publish once the outermost transaction has released its connection
        if transaction.parent is not None:
            return
        ready = session.info.pop(_READY_KEY, None)
        if ready:
            self.publish(ready)

    def _discard(self, session: Session) -> None:
        session.info.pop(_PENDING_KEY, None)
