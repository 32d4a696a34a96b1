import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from rules_relay.cache.service import CacheStore
from rules_relay.gateway.service import BackendGateway

API_URL = 'https://rules.test'
API_KEY = 'cs_live_0123456789abcdef'


class FakeClock:
	def __init__(self, start: float = 1000.0):
		self.now = start

	def __call__(self) -> float:
		return self.now

	def advance(self, seconds: float) -> None:
		self.now += seconds


def manifest_payload(**overrides: Any) -> dict[str, Any]:
	payload = {
		'serverConfig': {
			'name': 'codesona-rules',
			'version': '2.1.0',
			'description': 'Team coding standards',
		},
		'tools': [
			{
				'name': 'get_coding_rules',
				'description': 'Fetch the team coding rules',
				'inputSchema': {
					'type': 'object',
					'properties': {'codeContext': {'type': 'object'}},
				},
			},
			{
				'name': 'suggest_new_rule',
				'description': 'Suggest a new team rule',
				'inputSchema': {
					'type': 'object',
					'properties': {
						'title': {'type': 'string'},
						'description': {'type': 'string'},
						'rationale': {'type': 'string'},
					},
					'required': ['title', 'description', 'rationale'],
				},
				'config': {'endpoint': '/api/v1/rule-suggestions', 'method': 'POST'},
			},
			{
				'name': 'lint_snippet',
				'description': 'Declared by the backend but not served here',
				'inputSchema': {'type': 'object', 'properties': {}},
				'config': {'endpoint': '/api/v1/lint', 'method': 'POST'},
			},
		],
		'resources': [
			{
				'uri': 'codesona://rules/current',
				'name': 'Team rules',
				'description': 'Current coding rules',
				'mimeType': 'text/markdown',
			},
		],
		'prompts': [
			{
				'name': 'team_rules',
				'description': 'Inject the team rules',
				'instructions': 'Follow these rules when writing code',
			},
		],
	}
	payload.update(overrides)
	return payload


class BackendStub:
	"""Routes requests by path to canned responses and records every call."""

	def __init__(self):
		self.requests: list[httpx.Request] = []
		self.routes: dict[str, Callable[[httpx.Request], httpx.Response]] = {}

	def route(self, path: str, handler: Callable[[httpx.Request], httpx.Response]) -> None:
		self.routes[path] = handler

	def json(self, path: str, payload: Any, status_code: int = 200) -> None:
		self.route(path, lambda request: httpx.Response(status_code, json=payload))

	def text(self, path: str, text: str, status_code: int = 200) -> None:
		self.route(path, lambda request: httpx.Response(status_code, text=text))

	def fail(self, path: str, status_code: int = 503) -> None:
		self.route(path, lambda request: httpx.Response(status_code))

	def calls_to(self, path: str) -> list[httpx.Request]:
		return [r for r in self.requests if r.url.path == path]

	def bodies_to(self, path: str) -> list[Any]:
		return [json.loads(r.content) for r in self.calls_to(path)]

	def __call__(self, request: httpx.Request) -> httpx.Response:
		self.requests.append(request)
		handler = self.routes.get(request.url.path)
		if handler is None:
			return httpx.Response(404)
		return handler(request)


@pytest.fixture
def clock() -> FakeClock:
	return FakeClock()


@pytest.fixture
def backend() -> BackendStub:
	return BackendStub()


@pytest.fixture
def gateway(backend: BackendStub) -> BackendGateway:
	return BackendGateway(API_KEY, base_url=API_URL, transport=httpx.MockTransport(backend))


@pytest.fixture
def cache_store(clock: FakeClock) -> CacheStore:
	return CacheStore(clock=clock)
