"""Capability manifest served by the backend's ``mcp-config`` endpoint.

The manifest decides which tools, resources and prompts this server
advertises. Field names follow the backend's camelCase wire format.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class _ManifestModel(BaseModel):
	model_config = ConfigDict(extra='ignore', frozen=True, populate_by_name=True)


class ServerIdentity(_ManifestModel):
	name: str
	version: str = '1.0.0'
	description: str | None = None


class InvocationConfig(_ManifestModel):
	endpoint: str
	method: str = 'POST'


class ToolSpec(_ManifestModel):
	name: str
	description: str = ''
	input_schema: dict[str, Any] = Field(
		default_factory=lambda: {'type': 'object', 'properties': {}},
		alias='inputSchema',
	)
	invocation_config: InvocationConfig | None = Field(default=None, alias='config')


class ResourceSpec(_ManifestModel):
	uri: str
	name: str
	description: str | None = None
	mime_type: str = Field(default='text/plain', alias='mimeType')


class PromptSpec(_ManifestModel):
	name: str
	description: str | None = None
	instructions: str | None = None


class CapabilityManifest(_ManifestModel):
	server_identity: ServerIdentity = Field(alias='serverConfig')
	tools: tuple[ToolSpec, ...] = ()
	resources: tuple[ResourceSpec, ...] = ()
	prompts: tuple[PromptSpec, ...] = ()

	@model_validator(mode='after')
	def check_unique_keys(self) -> CapabilityManifest:
		for label, keys in (
			('tool name', [t.name for t in self.tools]),
			('resource uri', [r.uri for r in self.resources]),
			('prompt name', [p.name for p in self.prompts]),
		):
			seen: set[str] = set()
			for key in keys:
				if key in seen:
					raise ValueError(f'duplicate {label}: {key}')
				seen.add(key)
		return self

	def find_tool(self, name: str) -> ToolSpec | None:
		return next((t for t in self.tools if t.name == name), None)

	def find_resource(self, uri: str) -> ResourceSpec | None:
		return next((r for r in self.resources if r.uri == uri), None)

	def find_prompt(self, name: str) -> PromptSpec | None:
		return next((p for p in self.prompts if p.name == name), None)
