from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

import mcp.types as types

from rules_relay.manifest.views import ToolSpec

ToolHandler = Callable[[ToolSpec, dict[str, Any]], Awaitable[types.CallToolResult]]


class ServerState(str, Enum):
	UNINITIALIZED = 'uninitialized'
	LOADING = 'loading'
	READY = 'ready'
	FAILED_FATAL = 'failed_fatal'


@dataclass(frozen=True)
class ToolBinding:
	"""A manifest tool entry paired with the coroutine that serves it."""

	spec: ToolSpec
	handler: ToolHandler

	async def invoke(self, arguments: dict[str, Any]) -> types.CallToolResult:
		return await self.handler(self.spec, arguments)


def text_result(text: str, is_error: bool = False) -> types.CallToolResult:
	return types.CallToolResult(
		content=[types.TextContent(type='text', text=text)],
		isError=is_error,
	)
