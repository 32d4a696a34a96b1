import logging
import time
from collections.abc import Callable, Coroutine
from functools import wraps
from importlib.metadata import PackageNotFoundError, version
from typing import Any, ParamSpec, TypeVar

logger = logging.getLogger(__name__)

R = TypeVar('R')
P = ParamSpec('P')


def time_execution_async(func: Callable[P, Coroutine[Any, Any, R]]) -> Callable[P, Coroutine[Any, Any, R]]:
	@wraps(func)
	async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
		start_time = time.time()
		result = await func(*args, **kwargs)
		duration = time.time() - start_time

		func_name = getattr(func, '__name__', 'unknown')
		if duration > 1.0:
			logger.debug(f'⏱️  {func_name} took {duration:.2f}s')

		return result
	return wrapper


def get_rules_relay_version() -> str:
	try:
		return version('rules-relay')
	except PackageNotFoundError:
		return 'unknown'
