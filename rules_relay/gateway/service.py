import asyncio
import json
import logging
from typing import Any

import httpx

from rules_relay.gateway.exceptions import (
	GatewayTimeoutError,
	NotFoundError,
	RemoteError,
	UnauthorizedError,
)
from rules_relay.utils.config import DEFAULT_API_URL, mask_api_key
from rules_relay.utils.core import time_execution_async

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


class BackendGateway:
	"""Authenticated client for the remote rules service.

	Every call gets a fresh ``httpx.AsyncClient`` so that a cancelled or
	timed-out request never leaves a pooled connection behind. No retries
	are made here; callers fall back to their caches instead.
	"""

	def __init__(
		self,
		api_key: str,
		base_url: str = DEFAULT_API_URL,
		timeout: float = DEFAULT_TIMEOUT,
		verify: bool = True,
		transport: httpx.AsyncBaseTransport | None = None,
	):
		if not api_key:
			raise ValueError('api_key is required')
		self._api_key = api_key
		self.base_url = base_url.rstrip('/')
		self.timeout = timeout
		self.verify = verify
		self._transport = transport

	@property
	def key_prefix(self) -> str:
		return mask_api_key(self._api_key)

	def _headers(self) -> dict[str, str]:
		return {
			'Authorization': f'ApiKey {self._api_key}',
			'Content-Type': 'application/json',
		}

	@time_execution_async
	async def call(self, endpoint: str, method: str = 'GET', body: dict[str, Any] | None = None) -> Any:
		"""Call ``endpoint`` and return parsed JSON or raw text."""
		method = method.upper()
		logger.debug(f'[API_FETCH] {method} {endpoint} with key {self.key_prefix}')
		if body is not None:
			logger.debug(f'[API_FETCH] Request body: {json.dumps(body)}')

		try:
			# Hard deadline across connect, send and read
			response = await asyncio.wait_for(self._send(endpoint, method, body), timeout=self.timeout)
		except (asyncio.TimeoutError, httpx.TimeoutException) as e:
			logger.warning(f'[API_FETCH] ✗ Timeout after {self.timeout:g} seconds: {method} {endpoint}')
			raise GatewayTimeoutError(endpoint, self.timeout) from e
		except httpx.TransportError as e:
			logger.warning(f'[API_FETCH] ✗ Error: {e}')
			raise RemoteError(endpoint, detail=str(e) or type(e).__name__) from e

		logger.debug(f'[API_FETCH] Response status: {response.status_code} {response.reason_phrase}')
		self._raise_for_status(endpoint, response)
		return self._parse_payload(endpoint, response)

	async def _send(self, endpoint: str, method: str, body: dict[str, Any] | None) -> httpx.Response:
		async with httpx.AsyncClient(
			base_url=self.base_url,
			headers=self._headers(),
			timeout=self.timeout,
			verify=self.verify,
			transport=self._transport,
		) as client:
			kwargs: dict[str, Any] = {}
			if body is not None:
				kwargs['json'] = body
			response = await client.request(method, endpoint, **kwargs)
			return response

	@staticmethod
	def _raise_for_status(endpoint: str, response: httpx.Response) -> None:
		if response.is_success:
			return
		status = response.status_code
		logger.warning(f'[API_FETCH] ✗ {status} {response.reason_phrase} from {endpoint}')
		if status == 404:
			raise NotFoundError(endpoint)
		if status in (401, 403):
			raise UnauthorizedError(endpoint, status)
		raise RemoteError(endpoint, status, response.reason_phrase or None)

	@staticmethod
	def _parse_payload(endpoint: str, response: httpx.Response) -> Any:
		content_type = response.headers.get('content-type', '')
		if 'application/json' in content_type:
			try:
				payload = response.json()
			except ValueError as e:
				raise RemoteError(endpoint, response.status_code, f'invalid JSON body: {e}') from e
			logger.debug('[API_FETCH] ✓ Success (JSON response)')
			return payload

		text = response.text
		logger.debug(f'[API_FETCH] ✓ Success ({len(text)} chars text response)')
		return text
