from typing import Any

from pydantic import BaseModel, ConfigDict, Field

REQUIRED_SUGGESTION_FIELDS = ('title', 'description', 'rationale')


class CodeContext(BaseModel):
	"""Language/framework/platform tuple used to scope the relevant rules."""
	model_config = ConfigDict(extra='allow')

	language: str | None = None
	framework: str | None = None
	platform: str | None = None

	@classmethod
	def default(cls) -> 'CodeContext':
		return cls(language='csharp', framework='aspnet', platform='backend')

	@classmethod
	def resolve(cls, value: 'CodeContext | dict[str, Any] | None') -> 'CodeContext':
		if value is None:
			return cls.default()
		if isinstance(value, CodeContext):
			return value
		return cls.model_validate(value)

	def to_payload(self) -> dict[str, Any]:
		return self.model_dump(exclude_none=True)


class RuleSuggestion(BaseModel):
	model_config = ConfigDict(extra='ignore', populate_by_name=True)

	title: str = Field(min_length=1)
	description: str = Field(min_length=1)
	rationale: str = Field(min_length=1)
	example_code: str | None = Field(default=None, alias='exampleCode')
	bad_example_code: str | None = Field(default=None, alias='badExampleCode')
	good_example_code: str | None = Field(default=None, alias='goodExampleCode')
	code_context: CodeContext | None = Field(default=None, alias='codeContext')

	@classmethod
	def missing_fields(cls, arguments: dict[str, Any]) -> list[str]:
		return [name for name in REQUIRED_SUGGESTION_FIELDS if not arguments.get(name)]

	def to_payload(self) -> dict[str, Any]:
		return {
			'codeContext': CodeContext.resolve(self.code_context).to_payload(),
			'title': self.title,
			'description': self.description,
			'rationale': self.rationale,
			'exampleCode': self.example_code or None,
			'badExampleCode': self.bad_example_code or None,
			'goodExampleCode': self.good_example_code or None,
		}


class SuggestionReceipt(BaseModel):
	model_config = ConfigDict(extra='ignore', populate_by_name=True)

	suggestion_id: str | int | None = Field(default=None, alias='suggestionId')
	status: str | None = None
	message: str | None = None

	@classmethod
	def from_payload(cls, payload: Any) -> 'SuggestionReceipt':
		if isinstance(payload, dict):
			return cls.model_validate(payload)
		return cls(message=str(payload))

	def render(self) -> str:
		return (
			'✓ Rule suggestion sent successfully!\n\n'
			f'Suggestion ID: {self.suggestion_id}\n'
			f'Status: {self.status}\n\n'
			f'{self.message or ""}'
		)
