import asyncio
import logging
from collections.abc import Callable

import httpx

from domain.exceptions.currency import FetchTimeoutError, MalformedResponseError, NetworkError
from domain.models.currency import RateTable
from domain.registry import CurrencyRegistry
from infrastructure.providers.base import build_rates
from utils.time import now_millis

logger = logging.getLogger(__name__)


class ExchangeRateAPIProvider:
	BASE_URL = 'https://api.exchangerate-api.com/v4/latest'

	def __init__(
		self,
		registry: CurrencyRegistry,
		base_code: str = 'USD',
		base_url: str = BASE_URL,
		timeout: float = 10.0,
		tolerance: float = 1e-6,
		client: httpx.AsyncClient | None = None,
		clock: Callable[[], int] = now_millis,
	):
		registry.get(base_code)
		self.registry = registry
		self.base_code = base_code
		self.base_url = base_url.rstrip('/')
		self.timeout = timeout
		self.tolerance = tolerance
		self._clock = clock
		self._owns_client = client is None
		self._client = client or httpx.AsyncClient(timeout=timeout)

	@property
	def name(self) -> str:
		return 'exchangerate_api'

	async def _request(self) -> dict:
		url = f'{self.base_url}/{self.base_code}'

		try:
			response = await asyncio.wait_for(self._client.get(url), timeout=self.timeout)
			response.raise_for_status()
		except (TimeoutError, httpx.TimeoutException) as e:
			raise FetchTimeoutError(
				f'ExchangeRate-API request timed out after {self.timeout}s'
			) from e
		except httpx.HTTPStatusError as e:
			raise NetworkError(
				f'ExchangeRate-API HTTP error {e.response.status_code}: {e.response.text[:200]}'
			) from e
		except httpx.RequestError as e:
			raise NetworkError(f'ExchangeRate-API request failed: {e.__class__.__name__}') from e

		try:
			data = response.json()
		except ValueError as e:
			raise MalformedResponseError('ExchangeRate-API response is not valid JSON') from e

		if not isinstance(data, dict):
			raise MalformedResponseError('ExchangeRate-API response must be a JSON object')
		if data.get('result') == 'error':
			reason = data.get('error-type', 'Unknown error')
			raise MalformedResponseError(f'ExchangeRate-API error: {reason}')

		return data

	def _parse_timestamp(self, data: dict) -> int:
		raw = data.get('time_last_updated', data.get('timestamp'))
		if isinstance(raw, bool) or not isinstance(raw, (int, float)) or raw < 0:
			raise MalformedResponseError('Missing or invalid timestamp in response')
		return int(raw * 1000)

	async def fetch(self) -> RateTable:
		started_at = self._clock()
		data = await self._request()

		base = data.get('base', data.get('base_code'))
		if base is None:
			raise MalformedResponseError('Missing base currency in response')
		if base != self.base_code:
			raise MalformedResponseError(f'Expected base {self.base_code}, got {base}')
		if 'rates' not in data:
			raise MalformedResponseError('Missing rates in response')

		rates = build_rates(data['rates'], self.base_code, self.registry, self.tolerance)
		published_at = self._parse_timestamp(data)

		logger.debug(f'Fetched {len(rates)} rates from {self.name} (base {self.base_code})')
		return RateTable(
			base_code=self.base_code,
			rates=rates,
			fetched_at=self._clock(),
			fetch_started_at=started_at,
			source=self.name,
			published_at=published_at,
		)

	async def close(self) -> None:
		if self._owns_client:
			await self._client.aclose()
