class CurrencyException(Exception):
	pass


class InvalidCurrencyError(CurrencyException):
	pass


class UnknownCurrencyError(InvalidCurrencyError):
	def __init__(self, code: str):
		self.code = code
		super().__init__(f'Currency {code} is not supported')


class InvalidAmountError(CurrencyException):
	pass


class ProviderError(CurrencyException):
	pass


class RateSourceError(ProviderError):
	"""Base class for a fetch attempt that produced no usable rate table."""


class NetworkError(RateSourceError):
	pass


class FetchTimeoutError(RateSourceError):
	pass


class MalformedResponseError(RateSourceError):
	pass


class CacheError(CurrencyException):
	pass


class StateDecodeError(CacheError):
	pass
