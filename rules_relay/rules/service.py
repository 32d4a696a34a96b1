import json
import logging
from typing import Any

from pydantic import ValidationError

from rules_relay.cache.service import CacheStore, ReadThroughCache
from rules_relay.exceptions import InvalidArguments, RulesUnavailable
from rules_relay.gateway.exceptions import GatewayError
from rules_relay.gateway.service import BackendGateway
from rules_relay.rules.views import CodeContext

logger = logging.getLogger(__name__)

RULES_ENDPOINT = '/api/v1/dynamic-rules'


def render_rules(payload: Any) -> str:
	"""Rules arrive as text or JSON; protocol content is always text."""
	if isinstance(payload, str):
		return payload
	return json.dumps(payload, indent=2, ensure_ascii=False)


class RulesFetcher:
	"""Serves the current rules from cache, the backend, or a stale copy.

	The cache key is global: a request made with a different ``code_context``
	inside the ttl window receives whatever was fetched last.
	A context that fails validation is answered from whatever the cache holds,
	or with ``RulesUnavailable`` when nothing is cached.
	"""

	def __init__(self, gateway: BackendGateway, cache_store: CacheStore, endpoint: str = RULES_ENDPOINT):
		self.gateway = gateway
		self.endpoint = endpoint
		self._cache: ReadThroughCache[Any] = ReadThroughCache(cache_store.rules, 'rules')

	async def get_rules(self, code_context: CodeContext | dict[str, Any] | None = None) -> Any:
		try:
			context = CodeContext.resolve(code_context)
		except ValidationError as e:
			return self._serve_cached_for_invalid_context(InvalidArguments('codeContext', e))

		body = {'codeContext': context.to_payload()}

		async def fetch() -> Any:
			return await self.gateway.call(self.endpoint, 'POST', body)

		try:
			return await self._cache.get(fetch)
		except GatewayError as e:
			raise RulesUnavailable(e.message) from e

	async def get_rules_text(self, code_context: CodeContext | dict[str, Any] | None = None) -> str:
		return render_rules(await self.get_rules(code_context))

	def _serve_cached_for_invalid_context(self, error: InvalidArguments) -> Any:
		# The cache is context-blind, so any stored rules still answer the request
		if not self._cache.entry.has_value:
			raise RulesUnavailable(error.reason, message=f'No cached rules to serve: {error.message}') from error
		logger.warning(f'⚠ {error.message}, serving cached rules')
		return self._cache.entry.peek()
