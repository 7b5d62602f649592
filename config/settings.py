from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
	# Rates
	BASE_CURRENCY: str = 'USD'
	RATES_PROVIDER: Literal['exchangerate_api', 'static'] = 'exchangerate_api'
	RATES_API_URL: str = 'https://api.exchangerate-api.com/v4/latest'
	RATE_TTL_SECONDS: int = 3600
	FETCH_TIMEOUT_SECONDS: float = 10.0
	FETCH_RETRY_ATTEMPTS: int = 3
	RATE_TOLERANCE: float = 1e-6

	# Display
	ROUNDING_MODE: Literal['ROUND_HALF_UP', 'ROUND_HALF_EVEN', 'ROUND_FLOOR', 'ROUND_DOWN'] = (
		'ROUND_HALF_UP'
	)

	# Persisted selection and last good table
	STATE_BACKEND: Literal['database', 'redis', 'none'] = 'database'
	DATABASE_URL: str = 'sqlite+aiosqlite:///./currency_state.db'
	REDIS_URL: str = 'redis://localhost:6379'

	# Logging
	LOG_LEVEL: str = 'INFO'
	LOG_JSON: bool = False
	LOG_DIRECTORY: str | None = None

	# Application
	APP_NAME: str = 'Renthub Currency Service'
	DEBUG: bool = True

	model_config = SettingsConfigDict(env_file='.env', case_sensitive=False, extra='ignore')


@lru_cache
def get_settings() -> Settings:
	return Settings()
