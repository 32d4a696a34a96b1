"""Routes MCP requests onto the manifest-declared capabilities.

Tools are resolved through a table built once from the manifest. Only
``get_coding_rules`` and ``suggest_new_rule`` have server-side behaviour;
any other manifest tool is advertised but answers with ``ToolNotImplemented``.
"""

import logging
from typing import Any

import mcp.types as types
from mcp.server.lowlevel.helper_types import ReadResourceContents
from pydantic import ValidationError

from rules_relay.exceptions import InvalidArguments, RelayError, ToolNotImplemented, UnknownPrompt, UnknownResource, UnknownTool
from rules_relay.gateway.exceptions import GatewayError
from rules_relay.gateway.service import BackendGateway
from rules_relay.manifest.views import CapabilityManifest, ResourceSpec, ToolSpec
from rules_relay.mcp.views import ToolBinding, ToolHandler, text_result
from rules_relay.rules.service import RulesFetcher
from rules_relay.rules.views import RuleSuggestion, SuggestionReceipt

logger = logging.getLogger(__name__)

PROMPT_ERROR_DESCRIPTION = 'Error loading team rules'
MISSING_FIELDS_MESSAGE = 'Error: Missing required fields. Required: title, description, rationale'


def _describe(error: Exception) -> str:
	if isinstance(error, (RelayError, GatewayError)):
		return error.message
	return str(error) or type(error).__name__


class CapabilityDispatcher:
	def __init__(self, manifest: CapabilityManifest, rules_fetcher: RulesFetcher, gateway: BackendGateway):
		self.manifest = manifest
		self.rules_fetcher = rules_fetcher
		self.gateway = gateway
		self._tools: dict[str, ToolBinding] = self._build_tool_table()

	def _builtin_handlers(self) -> dict[str, ToolHandler]:
		return {
			'get_coding_rules': self._get_coding_rules,
			'suggest_new_rule': self._suggest_new_rule,
		}

	def _build_tool_table(self) -> dict[str, ToolBinding]:
		builtins = self._builtin_handlers()
		table: dict[str, ToolBinding] = {}
		for spec in self.manifest.tools:
			handler = builtins.get(spec.name)
			if handler is None:
				logger.warning(f'Manifest tool {spec.name} has no server-side handler')
				handler = self._not_implemented
			table[spec.name] = ToolBinding(spec, handler)
		return table

	@property
	def tool_names(self) -> list[str]:
		return list(self._tools)

	# Listing
	def list_tools(self) -> list[types.Tool]:
		return [
			types.Tool(name=t.name, description=t.description, inputSchema=t.input_schema)
			for t in self.manifest.tools
		]

	def list_resources(self) -> list[types.Resource]:
		return [
			types.Resource(uri=r.uri, name=r.name, description=r.description, mimeType=r.mime_type)
			for r in self.manifest.resources
		]

	def list_prompts(self) -> list[types.Prompt]:
		return [
			types.Prompt(name=p.name, description=p.description, arguments=[])
			for p in self.manifest.prompts
		]

	# Resources
	def _resolve_resource(self, uri: str) -> ResourceSpec:
		resource = self.manifest.find_resource(uri)
		if resource is None and uri.endswith('/'):
			# URL normalisation may append a slash to authority-only uris
			resource = self.manifest.find_resource(uri.rstrip('/'))
		if resource is None:
			raise UnknownResource(uri)
		return resource

	async def read_resource(self, uri: str) -> list[ReadResourceContents]:
		try:
			resource = self._resolve_resource(uri)
			# Every resource resolves to the current rules
			text = await self.rules_fetcher.get_rules_text()
		except RelayError as e:
			logger.error(f'✗ Error reading resource {uri}: {e.message}')
			raise
		return [ReadResourceContents(content=text, mime_type=resource.mime_type)]

	# Prompts
	async def get_prompt(self, name: str, arguments: dict[str, str] | None = None) -> types.GetPromptResult:
		try:
			prompt = self.manifest.find_prompt(name)
			if prompt is None:
				raise UnknownPrompt(name)
			text = await self.rules_fetcher.get_rules_text()
			logger.info(f'Prompt {name}: rules injected')
			return types.GetPromptResult(
				description=prompt.instructions,
				messages=[
					types.PromptMessage(role='user', content=types.TextContent(type='text', text=text)),
				],
			)
		except Exception as e:
			logger.error(f'✗ Prompt {name} failed: {_describe(e)}', exc_info=logger.isEnabledFor(logging.DEBUG))
			return types.GetPromptResult(
				description=PROMPT_ERROR_DESCRIPTION,
				messages=[
					types.PromptMessage(
						role='user',
						content=types.TextContent(type='text', text=f'{PROMPT_ERROR_DESCRIPTION}: {_describe(e)}'),
					),
				],
			)

	# Tools
	async def call_tool(self, name: str, arguments: dict[str, Any] | None = None) -> types.CallToolResult:
		try:
			binding = self._tools.get(name)
			if binding is None:
				raise UnknownTool(name)
			return await binding.invoke(arguments or {})
		except Exception as e:
			logger.error(f'✗ Error executing tool {name}: {_describe(e)}', exc_info=logger.isEnabledFor(logging.DEBUG))
			return text_result(f'Error: {_describe(e)}', is_error=True)

	async def _get_coding_rules(self, spec: ToolSpec, arguments: dict[str, Any]) -> types.CallToolResult:
		logger.info(f'Tool call: {spec.name}')
		text = await self.rules_fetcher.get_rules_text(arguments.get('codeContext'))
		return text_result(text)

	async def _suggest_new_rule(self, spec: ToolSpec, arguments: dict[str, Any]) -> types.CallToolResult:
		missing = RuleSuggestion.missing_fields(arguments)
		if missing:
			logger.info(f'Rejected {spec.name}: missing {", ".join(missing)}')
			return text_result(MISSING_FIELDS_MESSAGE, is_error=True)

		config = spec.invocation_config
		if config is None:
			raise ToolNotImplemented(spec.name, 'no endpoint configured')

		try:
			suggestion = RuleSuggestion.model_validate(arguments)
		except ValidationError as e:
			raise InvalidArguments('rule suggestion', e) from e
		logger.info(f'Tool call: {spec.name} ({suggestion.title})')
		result = await self.gateway.call(config.endpoint, config.method, suggestion.to_payload())

		receipt = SuggestionReceipt.from_payload(result)
		logger.info(f'✓ Rule suggestion sent: {receipt.suggestion_id}')
		return text_result(receipt.render())

	async def _not_implemented(self, spec: ToolSpec, arguments: dict[str, Any]) -> types.CallToolResult:
		raise ToolNotImplemented(spec.name)
