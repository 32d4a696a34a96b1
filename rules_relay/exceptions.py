from pydantic import ValidationError


class RelayError(Exception):
	"""Base class for failures surfaced to protocol clients."""

	def __init__(self, message: str, reason: str | None = None):
		super().__init__(message)
		self.message = message
		self.reason = reason or message


class ConfigUnavailable(RelayError):
	def __init__(self, reason: str):
		super().__init__(f'Failed to load MCP config: {reason}', reason)


class RulesUnavailable(RelayError):
	def __init__(self, reason: str, message: str | None = None):
		super().__init__(message or f'API unavailable and no cached data: {reason}', reason)


class UnknownResource(RelayError):
	def __init__(self, uri: str):
		super().__init__(f'Unknown resource URI: {uri}')
		self.uri = uri


class UnknownPrompt(RelayError):
	def __init__(self, name: str):
		super().__init__(f'Unknown prompt: {name}')
		self.name = name


class UnknownTool(RelayError):
	def __init__(self, name: str):
		super().__init__(f'Unknown tool: {name}')
		self.name = name


class ToolNotImplemented(RelayError):
	def __init__(self, name: str, reason: str | None = None):
		super().__init__(f'Tool {name} not implemented' + (f': {reason}' if reason else ''))
		self.name = name


def summarize_validation_error(error: ValidationError) -> str:
	"""Flattens a ValidationError into ``field: message`` pairs on a single line."""
	parts = []
	for detail in error.errors(include_url=False):
		location = '.'.join(str(part) for part in detail['loc'])
		parts.append(f'{location}: {detail["msg"]}' if location else detail['msg'])
	return '; '.join(parts)


class InvalidArguments(RelayError):
	def __init__(self, subject: str, error: ValidationError):
		reason = summarize_validation_error(error)
		super().__init__(f'Invalid {subject}: {reason}', reason)
		self.subject = subject
