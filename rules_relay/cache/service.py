"""In-memory, time-boxed caches for backend payloads.

Each ``CacheEntry`` holds at most one value. ``ReadThroughCache`` wraps an
entry with a fetch function and falls back to the last written value, however
old, when the backend cannot be reached.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from datetime import timedelta
from typing import Any, Generic, NamedTuple, TypeVar

from rules_relay.gateway.exceptions import GatewayError

logger = logging.getLogger(__name__)

T = TypeVar('T')

RULES_TTL = timedelta(minutes=5)
CONFIG_TTL = timedelta(minutes=10)


class CacheMissError(LookupError):
	pass


class _Slot(NamedTuple):
	value: Any
	written_at: float


class CacheEntry(Generic[T]):
	"""A single cached value with a last-write timestamp and a time-to-live."""

	def __init__(self, ttl: timedelta, clock: Callable[[], float] = time.monotonic):
		self.ttl = ttl
		self._clock = clock
		self._slot: _Slot | None = None

	@property
	def has_value(self) -> bool:
		return self._slot is not None and self._slot.value is not None

	@property
	def age(self) -> float | None:
		if self._slot is None:
			return None
		return self._clock() - self._slot.written_at

	def is_valid(self) -> bool:
		if not self.has_value:
			return False
		return self.age < self.ttl.total_seconds()

	def read(self) -> T:
		if not self.is_valid():
			raise CacheMissError('cache entry is empty or expired')
		return self._slot.value

	def peek(self) -> T | None:
		"""Return the stored value regardless of its age."""
		return self._slot.value if self._slot is not None else None

	def write(self, value: T) -> None:
		# Replaced in one assignment so readers never see a half-written entry
		self._slot = _Slot(value, self._clock())


class CacheStore:
	"""Owns the rules and config cache entries for one server process."""

	def __init__(
		self,
		rules_ttl: timedelta = RULES_TTL,
		config_ttl: timedelta = CONFIG_TTL,
		clock: Callable[[], float] = time.monotonic,
	):
		self.rules: CacheEntry[Any] = CacheEntry(rules_ttl, clock)
		self.config: CacheEntry[Any] = CacheEntry(config_ttl, clock)


class ReadThroughCache(Generic[T]):
	def __init__(self, entry: CacheEntry[T], name: str):
		self.entry = entry
		self.name = name
		self.last_read_stale = False
		self._lock = asyncio.Lock()

	async def get(self, fetch: Callable[[], Awaitable[T]]) -> T:
		async with self._lock:
			if self.entry.is_valid():
				logger.debug(f'✓ Using cached {self.name}')
				self.last_read_stale = False
				return self.entry.read()

			try:
				value = await fetch()
			except GatewayError as e:
				if not self.entry.has_value:
					raise
				logger.warning(f'⚠ API unavailable ({e.message}), using stale {self.name} cache')
				self.last_read_stale = True
				return self.entry.peek()

			self.entry.write(value)
			self.last_read_stale = False
			logger.info(f'✓ Fetched {self.name} from API')
			return value
