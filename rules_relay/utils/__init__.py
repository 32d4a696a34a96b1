from rules_relay.utils.config import (
	CONFIG,
	CoreConfig,
	RelaySettings,
	mask_api_key,
)
from rules_relay.utils.core import get_rules_relay_version, time_execution_async
from rules_relay.utils.logging import setup_logging

__all__ = [
	'CONFIG',
	'CoreConfig',
	'RelaySettings',
	'mask_api_key',
	'get_rules_relay_version',
	'time_execution_async',
	'setup_logging',
]
