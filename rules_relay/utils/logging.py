import logging
import sys

from dotenv import load_dotenv

load_dotenv()

from rules_relay.utils.config import CONFIG


def setup_logging(stream=None, log_level=None, force_setup=False):
	"""Send all log output to stderr; stdout carries the protocol stream."""
	log_type = log_level or CONFIG.RULES_RELAY_LOGGING_LEVEL

	if logging.getLogger().hasHandlers() and not force_setup:
		return logging.getLogger('rules_relay')

	# Clear existing handlers
	root_logger = logging.getLogger()
	for handler in root_logger.handlers[:]:
		root_logger.removeHandler(handler)

	handler = logging.StreamHandler(stream or sys.stderr)

	level_map = {
		'debug': logging.DEBUG,
		'info': logging.INFO,
		'warning': logging.WARNING,
		'error': logging.ERROR,
		'critical': logging.CRITICAL,
	}

	level = level_map.get(log_type.lower(), logging.INFO)

	handler.setFormatter(logging.Formatter('[%(asctime)s] %(levelname)s %(name)s: %(message)s'))
	handler.setLevel(level)

	root_logger.addHandler(handler)
	root_logger.setLevel(level)

	# Suppress noisy third-party loggers
	for noisy_logger in ['httpx', 'httpcore', 'mcp']:
		logging.getLogger(noisy_logger).setLevel(logging.WARNING)

	return logging.getLogger('rules_relay')
