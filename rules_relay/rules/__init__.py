from rules_relay.rules.service import RULES_ENDPOINT, RulesFetcher, render_rules
from rules_relay.rules.views import (
	REQUIRED_SUGGESTION_FIELDS,
	CodeContext,
	RuleSuggestion,
	SuggestionReceipt,
)

__all__ = [
	'RULES_ENDPOINT',
	'RulesFetcher',
	'render_rules',
	'REQUIRED_SUGGESTION_FIELDS',
	'CodeContext',
	'RuleSuggestion',
	'SuggestionReceipt',
]
