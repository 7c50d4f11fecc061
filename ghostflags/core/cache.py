"""
In-process TTL cache for resolved flag configurations.

One entry per scope key. Entries are replaced wholesale on refresh and
are never served once expired.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Generic, Hashable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
	value: T
	expires_at: float

	def is_expired(self, now: float) -> bool:
		return now >= self.expires_at


class ScopedCache(Generic[T]):
	"""
	TTL cache keyed by scope (a domain, or a (flag, domain) pair).

	The clock is injectable so tests can move time deterministically.
	"""

	def __init__(self, clock: Optional[Callable[[], float]] = None):
		self._clock = clock or time.monotonic
		self._entries: Dict[Hashable, CacheEntry[T]] = {}
		self._lock = threading.Lock()

	def get(self, key: Hashable) -> Optional[T]:
		"""Return the live value for key, or None if absent or expired."""
		with self._lock:
			entry = self._entries.get(key)
			if entry is None:
				return None
			if entry.is_expired(self._clock()):
				del self._entries[key]
				logger.debug(f'Cache entry expired for {key!r}')
				return None
			return entry.value

	def put(self, key: Hashable, value: T, ttl_seconds: float) -> CacheEntry[T]:
		"""Store value under key, replacing any existing entry."""
		entry = CacheEntry(value=value, expires_at=self._clock() + ttl_seconds)
		with self._lock:
			self._entries[key] = entry
		return entry

	def invalidate(self, key: Hashable) -> None:
		with self._lock:
			self._entries.pop(key, None)

	def clear(self) -> None:
		with self._lock:
			self._entries.clear()

	def __len__(self) -> int:
		with self._lock:
			return len(self._entries)
