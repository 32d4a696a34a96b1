import logging
import os

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_API_URL = 'https://codesona.ai'
PRODUCTION_MODE = 'production'
KEY_PREFIX_LENGTH = 12


def mask_api_key(api_key: str | None) -> str:
	if not api_key:
		return '<unset>'
	return f'{api_key[:KEY_PREFIX_LENGTH]}...'


class CoreConfig:
	@property
	def RULES_RELAY_LOGGING_LEVEL(self) -> str:
		return os.getenv('RULES_RELAY_LOGGING_LEVEL', 'info').lower()

	@property
	def API_KEY(self) -> str | None:
		return os.getenv('API_KEY') or None

	@property
	def API_URL(self) -> str:
		return (os.getenv('API_URL') or DEFAULT_API_URL).rstrip('/')

	@property
	def ENVIRONMENT_MODE(self) -> str:
		return (os.getenv('ENVIRONMENT_MODE') or PRODUCTION_MODE).lower()

	@property
	def VERIFY_TLS(self) -> bool:
		# Certificate checks are only enforced in production
		return self.ENVIRONMENT_MODE == PRODUCTION_MODE

	def validate(self) -> list[str]:
		problems = []
		if not self.API_KEY:
			problems.append('API_KEY environment variable is required')
		return problems

	def snapshot(self) -> 'RelaySettings':
		return RelaySettings(
			api_key=self.API_KEY or '',
			api_url=self.API_URL,
			environment_mode=self.ENVIRONMENT_MODE,
			verify_tls=self.VERIFY_TLS,
		)


class RelaySettings(BaseModel):
	"""Configuration captured once at startup and handed to the server."""
	model_config = ConfigDict(extra='ignore', frozen=True)

	api_key: str
	api_url: str = Field(default=DEFAULT_API_URL)
	environment_mode: str = Field(default=PRODUCTION_MODE)
	verify_tls: bool = Field(default=True)
	request_timeout: float = Field(default=10.0, gt=0)
	rules_ttl_seconds: float = Field(default=5 * 60, gt=0)
	config_ttl_seconds: float = Field(default=10 * 60, gt=0)

	@property
	def masked_api_key(self) -> str:
		return mask_api_key(self.api_key)


CONFIG = CoreConfig()
