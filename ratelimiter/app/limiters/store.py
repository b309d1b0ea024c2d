"""In-process key to state mapping used by the local limiters."""

import threading
from collections import OrderedDict
from typing import Callable, Generic, Iterator, Optional, TypeVar

from ratelimiter.app.core.logging import get_logger
from ratelimiter.app.exceptions import ConfigurationError

logger = get_logger(__name__)

S = TypeVar("S")


class LocalStateStore(Generic[S]):
    """Key to state mapping with LRU ordering and a single lock.

    The store does not lock on its own: the owning limiter holds ``lock``
    around the whole refill-check-decide-write sequence, and every method
    below expects to be called with it held.

    Memory bound:
    - Uses OrderedDict for LRU behavior
    - When ``max_entries`` is exceeded, idle states are purged first, then
      the least recently used 20% are evicted
    """

    EVICTION_FRACTION = 0.2

    def __init__(
        self,
        factory: Callable[[float], S],
        is_idle: Callable[[S, float], bool],
        max_entries: Optional[int] = None,
    ):
        """Initialize the store.

        Args:
            factory: Builds fresh state for a key first seen at ``now``
            is_idle: Reports whether a state is equivalent to fresh state
            max_entries: Maximum number of keys kept (None = unbounded)

        Raises:
            ConfigurationError: If max_entries is negative
        """
        if max_entries is not None and (
            isinstance(max_entries, bool) or not isinstance(max_entries, int) or max_entries < 0
        ):
            raise ConfigurationError(
                f"max_entries must be a non-negative integer or None, got {max_entries!r}"
            )
        self._factory = factory
        self._is_idle = is_idle
        self._max_entries = max_entries or None
        self._states: "OrderedDict[str, S]" = OrderedDict()
        self.lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._states)

    def __contains__(self, key: str) -> bool:
        return key in self._states

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._states))

    def get(self, key: str) -> Optional[S]:
        return self._states.get(key)

    def get_or_create(self, key: str, now: float) -> S:
        """Return the state for ``key``, creating fresh state if unseen."""
        state = self._states.get(key)
        if state is not None:
            self._states.move_to_end(key)
            return state
        if self._max_entries is not None and len(self._states) >= self._max_entries:
            self._enforce_limit(now)
        state = self._factory(now)
        self._states[key] = state
        return state

    def discard(self, key: str) -> None:
        self._states.pop(key, None)

    def purge(self, now: float) -> int:
        """Remove every idle state. Returns the number removed."""
        idle = [key for key, state in self._states.items() if self._is_idle(state, now)]
        for key in idle:
            del self._states[key]
        return len(idle)

    def _enforce_limit(self, now: float) -> None:
        self.purge(now)
        if len(self._states) < self._max_entries:
            return
        remove_count = max(1, int(self._max_entries * self.EVICTION_FRACTION))
        for _ in range(remove_count):
            self._states.popitem(last=False)
        logger.warning(
            f"Local rate limit store exceeded {self._max_entries} keys; "
            f"evicted {remove_count} least recently used"
        )
