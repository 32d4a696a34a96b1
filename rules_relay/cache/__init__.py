from rules_relay.cache.service import (
	CONFIG_TTL,
	RULES_TTL,
	CacheEntry,
	CacheMissError,
	CacheStore,
	ReadThroughCache,
)

__all__ = [
	'CONFIG_TTL',
	'RULES_TTL',
	'CacheEntry',
	'CacheMissError',
	'CacheStore',
	'ReadThroughCache',
]
