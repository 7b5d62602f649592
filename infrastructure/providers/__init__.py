from .base import RateSource
from .exchangerate_api import ExchangeRateAPIProvider
from .static import StaticRateSource

__all__ = ['RateSource', 'ExchangeRateAPIProvider', 'StaticRateSource']
