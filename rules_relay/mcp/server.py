"""MCP server that relays a remote rules repository to coding assistants.

The tools, resources and prompts it advertises come from the backend's
capability manifest, fetched at startup.

Usage:
    python -m rules_relay.mcp.server

Or as an MCP server in Claude Desktop or other MCP clients:
    {
        "mcpServers": {
            "rules-relay": {
                "command": "rules-relay",
                "env": {
                    "API_KEY": "your-api-key",
                    "API_URL": "https://codesona.ai"
                }
            }
        }
    }
"""

from __future__ import annotations

import sys

MIN_PYTHON = (3, 10)


def check_runtime(version_info: tuple[int, ...] = tuple(sys.version_info)) -> str | None:
	if tuple(version_info[:2]) < MIN_PYTHON:
		found = '.'.join(str(part) for part in version_info[:3])
		required = '.'.join(str(part) for part in MIN_PYTHON)
		return f'Python {found} is not supported; rules-relay requires Python {required} or higher'
	return None


# Must run before the imports below, which fail on older interpreters
_runtime_problem = check_runtime()
if _runtime_problem:
	sys.stderr.write(f'✗ FATAL: {_runtime_problem}\n')
	sys.exit(1)

import asyncio  # noqa: E402
import logging  # noqa: E402
from datetime import timedelta  # noqa: E402
from typing import Any  # noqa: E402

import mcp.types as types  # noqa: E402
from mcp.server import NotificationOptions, Server  # noqa: E402
from mcp.server.lowlevel.helper_types import ReadResourceContents  # noqa: E402
from mcp.server.models import InitializationOptions  # noqa: E402
from mcp.server.stdio import stdio_server  # noqa: E402
from mcp.shared.exceptions import McpError  # noqa: E402
from pydantic import AnyUrl  # noqa: E402

from rules_relay.cache.service import CacheStore  # noqa: E402
from rules_relay.exceptions import ConfigUnavailable, RelayError, UnknownResource  # noqa: E402
from rules_relay.gateway.service import BackendGateway  # noqa: E402
from rules_relay.manifest.service import ConfigurationBootstrapper  # noqa: E402
from rules_relay.manifest.views import CapabilityManifest  # noqa: E402
from rules_relay.mcp.dispatcher import CapabilityDispatcher  # noqa: E402
from rules_relay.mcp.views import ServerState  # noqa: E402
from rules_relay.rules.service import RulesFetcher  # noqa: E402
from rules_relay.utils.config import CONFIG, PRODUCTION_MODE, RelaySettings  # noqa: E402
from rules_relay.utils.core import get_rules_relay_version  # noqa: E402
from rules_relay.utils.logging import setup_logging  # noqa: E402

logger = logging.getLogger(__name__)


class RulesRelayServer:
	"""Bootstraps from the manifest, then serves MCP requests over stdio."""

	def __init__(
		self,
		settings: RelaySettings,
		gateway: BackendGateway | None = None,
		cache_store: CacheStore | None = None,
	):
		self.settings = settings
		self.gateway = gateway or BackendGateway(
			api_key=settings.api_key,
			base_url=settings.api_url,
			timeout=settings.request_timeout,
			verify=settings.verify_tls,
		)
		self.cache_store = cache_store or CacheStore(
			rules_ttl=timedelta(seconds=settings.rules_ttl_seconds),
			config_ttl=timedelta(seconds=settings.config_ttl_seconds),
		)
		self.bootstrapper = ConfigurationBootstrapper(self.gateway, self.cache_store)
		self.rules_fetcher = RulesFetcher(self.gateway, self.cache_store)

		self.state = ServerState.UNINITIALIZED
		self.manifest: CapabilityManifest | None = None
		self.dispatcher: CapabilityDispatcher | None = None
		self.server: Server | None = None

	async def bootstrap(self) -> Server:
		"""Load the manifest and register handlers; raises ConfigUnavailable."""
		if self.state is ServerState.READY and self.server is not None:
			return self.server

		self.state = ServerState.LOADING
		logger.info('📡 Loading MCP configuration (required for startup)...')
		try:
			manifest = await self.bootstrapper.load_manifest()
		except ConfigUnavailable:
			self.state = ServerState.FAILED_FATAL
			raise

		dispatcher = CapabilityDispatcher(manifest, self.rules_fetcher, self.gateway)
		identity = manifest.server_identity
		server = Server(identity.name, version=identity.version, instructions=identity.description)
		self._setup_handlers(server, dispatcher)

		self.manifest = manifest
		self.dispatcher = dispatcher
		self.server = server
		self.state = ServerState.READY
		logger.info(
			f'✓ MCP configuration loaded: {len(manifest.tools)} tools, '
			f'{len(manifest.resources)} resources, {len(manifest.prompts)} prompts'
		)
		return server

	def _setup_handlers(self, server: Server, dispatcher: CapabilityDispatcher) -> None:
		"""Setup MCP server handlers."""

		@server.list_tools()
		async def handle_list_tools() -> list[types.Tool]:
			return dispatcher.list_tools()

		# Arguments are checked by the tool handlers so that failures come back as tool results
		@server.call_tool(validate_input=False)
		async def handle_call_tool(name: str, arguments: dict[str, Any] | None) -> types.CallToolResult:
			return await dispatcher.call_tool(name, arguments or {})

		@server.list_resources()
		async def handle_list_resources() -> list[types.Resource]:
			return dispatcher.list_resources()

		@server.read_resource()
		async def handle_read_resource(uri: AnyUrl) -> list[ReadResourceContents]:
			try:
				return await dispatcher.read_resource(str(uri))
			except UnknownResource as e:
				raise McpError(types.ErrorData(code=types.INVALID_PARAMS, message=e.message)) from e
			except RelayError as e:
				raise McpError(types.ErrorData(code=types.INTERNAL_ERROR, message=e.message)) from e

		@server.list_prompts()
		async def handle_list_prompts() -> list[types.Prompt]:
			return dispatcher.list_prompts()

		@server.get_prompt()
		async def handle_get_prompt(name: str, arguments: dict[str, str] | None) -> types.GetPromptResult:
			return await dispatcher.get_prompt(name, arguments)

	async def run(self) -> None:
		"""Run the MCP server."""
		server = await self.bootstrap()
		identity = self.manifest.server_identity

		logger.info('✓ Connecting server to stdio transport...')
		async with stdio_server() as (read_stream, write_stream):
			logger.info(f'✓ {identity.name} ready, listening for MCP requests on stdin/stdout')
			await server.run(
				read_stream,
				write_stream,
				InitializationOptions(
					server_name=identity.name,
					server_version=identity.version,
					instructions=identity.description,
					capabilities=server.get_capabilities(
						notification_options=NotificationOptions(),
						experimental_capabilities={},
					),
				),
			)


def _log_startup(settings: RelaySettings) -> None:
	logger.info(f'🚀 Starting rules-relay {get_rules_relay_version()} (stdio)')
	logger.info(f'   Environment: {settings.environment_mode}')
	logger.info(f'   API URL: {settings.api_url}')
	logger.info(f'   API Key: {settings.masked_api_key}')
	if settings.environment_mode != PRODUCTION_MODE:
		logger.warning(
			f'⚠ ENVIRONMENT_MODE={settings.environment_mode}: TLS certificate verification is DISABLED '
			'for backend calls. Never use this outside development.'
		)


async def main(settings: RelaySettings) -> None:
	"""Main entry point."""
	server = RulesRelayServer(settings)
	await server.run()


def cli() -> None:
	setup_logging(stream=sys.stderr)

	problems = CONFIG.validate()
	if problems:
		for problem in problems:
			logger.critical(f'✗ FATAL: {problem}')
		sys.exit(1)

	settings = CONFIG.snapshot()
	_log_startup(settings)

	try:
		asyncio.run(main(settings))
	except ConfigUnavailable as e:
		logger.critical(f'✗ FATAL: {e.message}')
		logger.critical('✗ Server cannot start without MCP configuration')
		sys.exit(1)
	except KeyboardInterrupt:
		logger.info('🔄 Shutting down gracefully...')


if __name__ == '__main__':
	cli()
