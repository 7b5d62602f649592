from .conversion_service import ConversionService
from .currency_context import CurrencyContext, PriceView
from .price_formatter import PriceFormatter
from .rate_cache import RateCache
from .refresh_scheduler import RefreshScheduler

__all__ = [
	'ConversionService',
	'CurrencyContext',
	'PriceFormatter',
	'PriceView',
	'RateCache',
	'RefreshScheduler',
]
