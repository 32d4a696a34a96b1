from rules_relay.manifest.service import MANIFEST_ENDPOINT, ConfigurationBootstrapper
from rules_relay.manifest.views import (
	CapabilityManifest,
	InvocationConfig,
	PromptSpec,
	ResourceSpec,
	ServerIdentity,
	ToolSpec,
)

__all__ = [
	'MANIFEST_ENDPOINT',
	'ConfigurationBootstrapper',
	'CapabilityManifest',
	'InvocationConfig',
	'PromptSpec',
	'ResourceSpec',
	'ServerIdentity',
	'ToolSpec',
]
