import logging

from pydantic import ValidationError

from rules_relay.cache.service import CacheStore, ReadThroughCache
from rules_relay.exceptions import ConfigUnavailable
from rules_relay.gateway.exceptions import GatewayError, MalformedResponseError
from rules_relay.gateway.service import BackendGateway
from rules_relay.manifest.views import CapabilityManifest

logger = logging.getLogger(__name__)

MANIFEST_ENDPOINT = '/api/v1/mcp-config'


class ConfigurationBootstrapper:
	"""Loads the capability manifest through the config cache."""

	def __init__(self, gateway: BackendGateway, cache_store: CacheStore, endpoint: str = MANIFEST_ENDPOINT):
		self.gateway = gateway
		self.endpoint = endpoint
		self._cache: ReadThroughCache[CapabilityManifest] = ReadThroughCache(cache_store.config, 'MCP config')

	@property
	def degraded(self) -> bool:
		"""True when the last load was served from a stale cache entry."""
		return self._cache.last_read_stale

	async def _fetch(self) -> CapabilityManifest:
		logger.info(f'[MCP_CONFIG] Fetching config from {self.gateway.base_url}{self.endpoint}')
		payload = await self.gateway.call(self.endpoint, 'GET')
		if not isinstance(payload, dict):
			raise MalformedResponseError(self.endpoint, 'expected a JSON object')
		try:
			return CapabilityManifest.model_validate(payload)
		except ValidationError as e:
			raise MalformedResponseError(self.endpoint, str(e)) from e

	async def load_manifest(self) -> CapabilityManifest:
		try:
			manifest = await self._cache.get(self._fetch)
		except GatewayError as e:
			logger.error(f'[MCP_CONFIG] ✗ Error: {e.message}')
			raise ConfigUnavailable(e.message) from e

		if self.degraded:
			logger.warning('[MCP_CONFIG] ⚠ Running in degraded mode with a stale MCP config')
		return manifest
