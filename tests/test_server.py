"""Tests for the relay server lifecycle, handler registration and process exit codes."""

import ast
import logging
from pathlib import Path

import httpx
import mcp.types as types
import pytest
from mcp.shared.exceptions import McpError

from rules_relay.exceptions import ConfigUnavailable
from rules_relay.gateway.service import BackendGateway
from rules_relay.manifest.service import MANIFEST_ENDPOINT
from rules_relay.mcp import server as server_module
from rules_relay.mcp.server import RulesRelayServer, check_runtime
from rules_relay.mcp.views import ServerState
from rules_relay.utils.config import CONFIG, RelaySettings
from tests.conftest import API_KEY, API_URL, BackendStub, manifest_payload


@pytest.fixture
def settings():
	return RelaySettings(api_key=API_KEY, api_url=API_URL)


@pytest.fixture
def relay(settings, gateway, cache_store):
	return RulesRelayServer(settings, gateway=gateway, cache_store=cache_store)


class TestBootstrap:
	async def test_ready_after_manifest_load(self, relay, backend):
		backend.json(MANIFEST_ENDPOINT, manifest_payload())
		assert relay.state is ServerState.UNINITIALIZED

		server = await relay.bootstrap()

		assert relay.state is ServerState.READY
		assert server.name == 'codesona-rules'
		assert server.version == '2.1.0'
		assert server.instructions == 'Team coding standards'
		for request_type in (
			types.ListToolsRequest,
			types.CallToolRequest,
			types.ListResourcesRequest,
			types.ReadResourceRequest,
			types.ListPromptsRequest,
			types.GetPromptRequest,
		):
			assert request_type in server.request_handlers

	async def test_bootstrap_is_idempotent(self, relay, backend):
		backend.json(MANIFEST_ENDPOINT, manifest_payload())

		first = await relay.bootstrap()
		second = await relay.bootstrap()

		assert first is second
		assert len(backend.calls_to(MANIFEST_ENDPOINT)) == 1

	async def test_fatal_when_no_manifest(self, relay, backend):
		backend.fail(MANIFEST_ENDPOINT, 503)

		with pytest.raises(ConfigUnavailable):
			await relay.bootstrap()

		assert relay.state is ServerState.FAILED_FATAL
		assert relay.server is None
		assert relay.dispatcher is None

	async def test_list_tools_handler(self, relay, backend):
		backend.json(MANIFEST_ENDPOINT, manifest_payload())
		server = await relay.bootstrap()

		result = await server.request_handlers[types.ListToolsRequest](types.ListToolsRequest(method='tools/list'))

		assert [t.name for t in result.root.tools] == ['get_coding_rules', 'suggest_new_rule', 'lint_snippet']

	async def test_unknown_resource_is_protocol_error(self, relay, backend):
		backend.json(MANIFEST_ENDPOINT, manifest_payload())
		server = await relay.bootstrap()
		request = types.ReadResourceRequest(
			method='resources/read',
			params=types.ReadResourceRequestParams(uri='unknown://uri'),
		)

		with pytest.raises(McpError) as exc_info:
			await server.request_handlers[types.ReadResourceRequest](request)

		assert exc_info.value.error.code == types.INVALID_PARAMS
		assert 'unknown://uri' in exc_info.value.error.message


class TestCli:
	def test_missing_api_key_exits_1(self, monkeypatch):
		monkeypatch.delenv('API_KEY', raising=False)

		with pytest.raises(SystemExit) as exc_info:
			server_module.cli()

		assert exc_info.value.code == 1

	def test_manifest_failure_exits_1_before_serving(self, monkeypatch):
		backend = BackendStub()
		backend.fail(MANIFEST_ENDPOINT, 500)
		served = []

		def failing_gateway(**kwargs):
			return BackendGateway(transport=httpx.MockTransport(backend), **kwargs)

		def stdio_server():
			served.append(True)
			raise AssertionError('stdio transport must not be opened')

		monkeypatch.setenv('API_KEY', API_KEY)
		monkeypatch.setenv('API_URL', API_URL)
		monkeypatch.setattr(server_module, 'BackendGateway', failing_gateway)
		monkeypatch.setattr(server_module, 'stdio_server', stdio_server)

		with pytest.raises(SystemExit) as exc_info:
			server_module.cli()

		assert exc_info.value.code == 1
		assert served == []
		assert len(backend.calls_to(MANIFEST_ENDPOINT)) == 1


def test_check_runtime():
	assert check_runtime((3, 12, 1)) is None
	assert 'not supported' in check_runtime((3, 9, 18))


def test_runtime_guard_runs_before_dependent_imports():
	tree = ast.parse(Path(server_module.__file__).read_text(encoding='utf-8'))
	body = tree.body
	guard = next(
		i for i, node in enumerate(body)
		if isinstance(node, ast.If) and isinstance(node.test, ast.Name) and node.test.id == '_runtime_problem'
	)
	early_imports = [
		alias.name
		for node in body[:guard]
		if isinstance(node, ast.Import)
		for alias in node.names
	] + [node.module for node in body[:guard] if isinstance(node, ast.ImportFrom)]

	assert sorted(early_imports) == ['__future__', 'sys']


class TestGatewayWiring:
	def test_production_settings_reach_default_gateway(self):
		relay = RulesRelayServer(RelaySettings(api_key=API_KEY, api_url=API_URL, request_timeout=4.0))

		assert relay.gateway.verify is True
		assert relay.gateway.base_url == API_URL
		assert relay.gateway.timeout == 4.0

	def test_development_mode_disables_tls_verification(self, monkeypatch):
		monkeypatch.setenv('API_KEY', API_KEY)
		monkeypatch.setenv('ENVIRONMENT_MODE', 'development')

		relay = RulesRelayServer(CONFIG.snapshot())

		assert relay.gateway.verify is False

	def test_tls_warning_logged_outside_production(self, caplog):
		settings = RelaySettings(api_key=API_KEY, api_url=API_URL, environment_mode='development', verify_tls=False)

		with caplog.at_level(logging.INFO, logger=server_module.__name__):
			server_module._log_startup(settings)

		warnings = [r.getMessage() for r in caplog.records if r.levelno == logging.WARNING]
		assert len(warnings) == 1
		assert 'TLS certificate verification is DISABLED' in warnings[0]
		assert API_KEY not in caplog.text

	def test_no_tls_warning_in_production(self, caplog, settings):
		with caplog.at_level(logging.INFO, logger=server_module.__name__):
			server_module._log_startup(settings)

		assert not [r for r in caplog.records if r.levelno == logging.WARNING]
