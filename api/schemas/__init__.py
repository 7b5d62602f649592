from .requests import CurrencySelectionRequest
from .responses import (
	ConversionResponse,
	CurrencyResponse,
	CurrentCurrencyResponse,
	FormattedPriceResponse,
	HealthResponse,
	RateStatusResponse,
	RefreshResponse,
	SupportedCurrenciesResponse,
)

__all__ = [
	'CurrencySelectionRequest',
	'ConversionResponse',
	'CurrencyResponse',
	'CurrentCurrencyResponse',
	'FormattedPriceResponse',
	'HealthResponse',
	'RateStatusResponse',
	'RefreshResponse',
	'SupportedCurrenciesResponse',
]
