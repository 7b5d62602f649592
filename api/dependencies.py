import logging

from redis.asyncio import Redis

from application.services import CurrencyContext, PriceFormatter, RateCache
from config.settings import Settings, get_settings
from domain.registry import CurrencyRegistry, default_registry
from infrastructure.cache.redis_cache import RedisStateStore
from infrastructure.persistence.base import StateStore
from infrastructure.persistence.database import Database
from infrastructure.persistence.repositories.currency_state import DatabaseStateStore
from infrastructure.providers import ExchangeRateAPIProvider, RateSource, StaticRateSource

logger = logging.getLogger(__name__)


class AppDependencies:
	"""Container for application-wide singleton dependencies."""

	registry: CurrencyRegistry | None = None
	source: RateSource | None = None
	db: Database | None = None
	redis_client: Redis | None = None
	store: StateStore | None = None
	context: CurrencyContext | None = None


deps = AppDependencies()


def build_rate_source(settings: Settings, registry: CurrencyRegistry) -> RateSource:
	if settings.RATES_PROVIDER == 'static':
		return StaticRateSource(registry, base_code=settings.BASE_CURRENCY)
	return ExchangeRateAPIProvider(
		registry,
		base_code=settings.BASE_CURRENCY,
		base_url=settings.RATES_API_URL,
		timeout=settings.FETCH_TIMEOUT_SECONDS,
		tolerance=settings.RATE_TOLERANCE,
	)


def build_state_store(settings: Settings) -> StateStore | None:
	if settings.STATE_BACKEND == 'database':
		deps.db = Database(settings.DATABASE_URL)
		return DatabaseStateStore(deps.db)
	if settings.STATE_BACKEND == 'redis':
		deps.redis_client = Redis.from_url(settings.REDIS_URL, decode_responses=True)
		return RedisStateStore(deps.redis_client)
	return None


def build_context(
	settings: Settings,
	registry: CurrencyRegistry,
	source: RateSource,
	store: StateStore | None,
) -> CurrencyContext:
	cache = RateCache(
		source,
		registry,
		base_code=settings.BASE_CURRENCY,
		ttl_seconds=settings.RATE_TTL_SECONDS,
		retry_attempts=settings.FETCH_RETRY_ATTEMPTS,
	)
	return CurrencyContext(
		registry,
		cache,
		store=store,
		formatter=PriceFormatter(rounding=settings.ROUNDING_MODE),
	)


def init_dependencies(settings: Settings | None = None) -> None:
	"""Initialize all singleton dependencies. Called at app startup."""
	logger.info('Initializing dependencies...')
	settings = settings or get_settings()

	deps.registry = default_registry
	deps.source = build_rate_source(settings, deps.registry)
	deps.store = build_state_store(settings)
	deps.context = build_context(settings, deps.registry, deps.source, deps.store)
	logger.info(
		f'Dependencies initialized (provider {deps.source.name}, state backend {settings.STATE_BACKEND})'
	)


async def bootstrap() -> None:
	"""Restore persisted state and start the refresh schedule. Called after init_dependencies()."""
	if deps.context is None:
		raise RuntimeError('Dependencies not initialized. Call init_dependencies() first.')

	if deps.db is not None:
		await deps.db.create_tables()
		logger.info('Database tables created')

	await deps.context.start()


async def cleanup_dependencies() -> None:
	logger.info('Cleaning up dependencies...')

	if deps.context:
		await deps.context.close()
	if deps.source:
		await deps.source.close()
	if deps.store:
		await deps.store.close()

	deps.context = None
	deps.source = None
	deps.store = None
	deps.db = None
	deps.redis_client = None
	logger.info('Cleanup complete')


def get_currency_context() -> CurrencyContext:
	if deps.context is None:
		raise RuntimeError('Currency context not initialized')
	return deps.context
