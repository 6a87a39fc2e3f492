"""Read-through views of whole collections, refreshed on change notifications."""
import logging
import threading
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from tailorshop import crud
from tailorshop.db.realtime import ChangeFeed, Subscription
from tailorshop.errors import FetchError

logger = logging.getLogger(__name__)

Fetcher = Callable[[], List[Dict[str, Any]]]


def fetch_collection(fetcher: Fetcher) -> Tuple[List[Dict[str, Any]], Optional[str]]:
    """Run `fetcher`, returning ``(items, None)`` or ``([], message)`` on failure."""
    try:
        return list(fetcher() or []), None
    except FetchError as e:
        return [], e.message or "Failed to fetch data"
    except Exception as e:
        logger.exception("Unexpected error while fetching: %s", e)
        return [], str(e) or e.__class__.__name__


class CollectionSync:
    """Holds the last fetched collection plus loading and error state.

    `mount()` fetches once and subscribes to the tables; every notification
    refetches the entire collection. `unmount()` releases the subscription.
    """

    def __init__(self, name: str, fetcher: Fetcher, feed: ChangeFeed, tables: Iterable[str]):
        self.name = name
        self.fetcher = fetcher
        self.feed = feed
        self.tables = tuple(tables)
        self._lock = threading.Lock()
        self._items: List[Dict[str, Any]] = []
        self._error: Optional[str] = None
        self._loading = True
        self._subscription: Optional[Subscription] = None
        # refetches started, and the newest one whose result was kept
        self._started = 0
        self._applied = 0
        self.refresh_count = 0

    @property
    def mounted(self) -> bool:
        return self._subscription is not None and self._subscription.active

    def mount(self) -> "CollectionSync":
        if not self.mounted:
            self._subscription = self.feed.subscribe(self.tables, self._on_change)
        self.refresh()
        return self

    def unmount(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def _on_change(self, tables) -> None:
        logger.debug("Refetching %s after change in %s", self.name, sorted(tables))
        self.refresh()

    def refresh(self) -> Optional[str]:
        """Refetch the collection. A result older than one already applied is dropped."""
        with self._lock:
            self._started += 1
            generation = self._started
            self._loading = True
        items, error = fetch_collection(self.fetcher)
        with self._lock:
            if generation < self._applied:
                logger.debug("Dropping stale fetch of %s generation=%s", self.name, generation)
                return error
            self._applied = generation
            self._items = items
            self._error = error
            self._loading = self._applied < self._started
            self.refresh_count += 1
        if error:
            logger.warning("Fetching %s failed: %s", self.name, error)
        return error

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return {"items": list(self._items), "loading": self._loading, "error": self._error}

    @property
    def items(self) -> List[Dict[str, Any]]:
        return self.snapshot()["items"]

    @property
    def error(self) -> Optional[str]:
        return self.snapshot()["error"]

    @property
    def loading(self) -> bool:
        return self.snapshot()["loading"]

    def require_items(self) -> List[Dict[str, Any]]:
        """Items for a request; a stored error is raised so the caller can offer a retry."""
        snap = self.snapshot()
        if snap["error"]:
            raise FetchError(snap["error"])
        return snap["items"]


def session_fetcher(client, list_fn) -> Fetcher:
    """Adapt a ``crud.list_*(session)`` function into a no-argument fetcher."""

    def fetch():
        with client.session() as session:
            return list_fn(session)

    return fetch


def build_syncs(client) -> Dict[str, CollectionSync]:
    specs = {
        "customers": (crud.list_customers, ("customers",)),
        "fabrics": (crud.list_fabrics, ("fabrics",)),
        "garments": (crud.list_garments, ("garments",)),
        "orders": (crud.list_orders, ("orders", "customers", "fabrics", "garments")),
    }
    return {
        name: CollectionSync(name, session_fetcher(client, fn), client.feed, tables)
        for name, (fn, tables) in specs.items()
    }
