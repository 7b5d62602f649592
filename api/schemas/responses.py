from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class CurrencyResponse(BaseModel):
	code: str = Field(..., description='ISO 4217 code')
	name: str
	symbol: str
	decimal_digits: int = Field(..., description='Display precision')
	flag: str


class SupportedCurrenciesResponse(BaseModel):
	currencies: list[CurrencyResponse]
	current: str = Field(..., description='Currently selected display currency')


class CurrentCurrencyResponse(BaseModel):
	currency: CurrencyResponse


class ConversionResponse(BaseModel):
	from_currency: str = Field(..., description='Currency the amount is expressed in')
	to_currency: str = Field(..., description='Selected display currency')
	original_amount: Decimal
	converted_amount: Decimal = Field(..., description='Unrounded converted amount')
	formatted: str = Field(..., description='Converted amount rendered for display')
	exchange_rate: Decimal
	rates_source: str
	stale: bool
	fetched_at: int = Field(..., description='Epoch millis when the rate table was fetched')


class FormattedPriceResponse(BaseModel):
	currency: str
	amount: Decimal
	formatted: str


class RateStatusResponse(BaseModel):
	base_currency: str
	is_loading: bool
	last_updated: int | None = Field(None, description='Epoch millis of the last commit')
	last_updated_label: str
	last_error: str | None = None
	stale: bool
	source: str
	rates: dict[str, Decimal]


class RefreshResponse(BaseModel):
	result: str
	error: str | None = None
	message: str | None = None
	status: RateStatusResponse


class HealthResponse(BaseModel):
	status: str = Field(..., description='healthy, or degraded while serving stale or bootstrap rates')
	timestamp: datetime
	rates_source: str
	stale: bool
	last_error: str | None = None
	refresh_scheduled: bool
