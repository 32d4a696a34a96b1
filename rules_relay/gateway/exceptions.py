class GatewayError(Exception):
	"""A backend call did not produce a usable payload."""

	def __init__(self, message: str, status_code: int | None = None, endpoint: str | None = None):
		super().__init__(message)
		self.message = message
		self.status_code = status_code
		self.endpoint = endpoint


class NotFoundError(GatewayError):
	def __init__(self, endpoint: str):
		super().__init__(f'Endpoint not found: {endpoint}', 404, endpoint)


class UnauthorizedError(GatewayError):
	def __init__(self, endpoint: str, status_code: int = 401):
		super().__init__('Invalid API Key', status_code, endpoint)


class GatewayTimeoutError(GatewayError):
	def __init__(self, endpoint: str, timeout: float):
		super().__init__(
			f'Network timeout: API request took longer than {timeout:g} seconds',
			endpoint=endpoint,
		)
		self.timeout = timeout


class RemoteError(GatewayError):
	def __init__(self, endpoint: str, status_code: int | None = None, detail: str | None = None):
		if status_code is None:
			message = f'Failed to reach API: {detail or "connection error"}'
		else:
			message = f'API error {status_code}: {detail or "request failed"}'
		super().__init__(message, status_code, endpoint)


class MalformedResponseError(GatewayError):
	def __init__(self, endpoint: str, detail: str):
		super().__init__(f'Malformed response from {endpoint}: {detail}', endpoint=endpoint)
