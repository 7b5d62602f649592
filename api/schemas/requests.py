from pydantic import BaseModel, ConfigDict, Field, field_validator


class CurrencySelectionRequest(BaseModel):
	code: str = Field(..., description='Currency code, checked against the supported catalog')

	@field_validator('code')
	@classmethod
	def uppercase_currency(cls, v: str):
		return v.upper()

	model_config = ConfigDict(json_schema_extra={'example': {'code': 'EUR'}})
