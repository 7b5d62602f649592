from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from types import MappingProxyType

BOOTSTRAP_SOURCE = 'bootstrap'


class ErrorKind(str, Enum):
	NETWORK = 'network'
	TIMEOUT = 'timeout'
	MALFORMED = 'malformed'
	SUPERSEDED = 'superseded'


class RefreshStatus(str, Enum):
	IDLE = 'idle'
	REFRESHING = 'refreshing'


class RefreshResult(str, Enum):
	COMMITTED = 'committed'
	SUPERSEDED = 'superseded'
	FAILED = 'failed'


@dataclass(frozen=True)
class Currency:
	code: str
	name: str
	symbol: str
	decimal_digits: int
	flag: str


@dataclass(frozen=True)
class RateTable:
	"""A snapshot of every supported rate relative to ``base_code``.

	Tables are never edited in place: a refresh builds a new table and the
	cache swaps the reference. ``rates`` is exposed read-only.
	"""

	base_code: str
	rates: Mapping[str, Decimal]
	fetched_at: int  # epoch millis
	fetch_started_at: int  # epoch millis
	source: str
	published_at: int | None = None  # upstream timestamp, epoch millis

	def __post_init__(self):
		object.__setattr__(self, 'rates', MappingProxyType(dict(self.rates)))

	@property
	def is_bootstrap(self) -> bool:
		return self.source == BOOTSTRAP_SOURCE

	@classmethod
	def bootstrap(cls, base_code: str, codes: Iterable[str]) -> 'RateTable':
		"""Every rate 1, timestamps at the epoch so the table always reads as stale."""
		rates = {code: Decimal(1) for code in codes}
		rates[base_code] = Decimal(1)
		return cls(
			base_code=base_code,
			rates=rates,
			fetched_at=0,
			fetch_started_at=0,
			source=BOOTSTRAP_SOURCE,
		)


@dataclass(frozen=True)
class CacheSnapshot:
	table: RateTable
	stale: bool


@dataclass(frozen=True)
class RefreshState:
	status: RefreshStatus = RefreshStatus.IDLE
	last_updated: int | None = None
	last_error: ErrorKind | None = None


@dataclass(frozen=True)
class RefreshOutcome:
	result: RefreshResult
	table: RateTable  # the table held by the cache once the attempt settled
	fetch_started_at: int
	error: ErrorKind | None = None
	message: str | None = None

	@property
	def committed(self) -> bool:
		return self.result is RefreshResult.COMMITTED


@dataclass(frozen=True)
class PersistedState:
	selected_code: str
	table: RateTable | None = None


@dataclass(frozen=True)
class ContextSnapshot:
	current_currency: str
	table: RateTable
	stale: bool
	is_loading: bool
	last_updated: int | None
	last_error: ErrorKind | None


class ContextEventKind(str, Enum):
	CURRENCY_CHANGED = 'currency_changed'
	LOADING_CHANGED = 'loading_changed'
	RATES_COMMITTED = 'rates_committed'
	REFRESH_FAILED = 'refresh_failed'
	REFRESH_DISCARDED = 'refresh_discarded'


@dataclass(frozen=True)
class ContextEvent:
	kind: ContextEventKind
	snapshot: ContextSnapshot
	details: dict = field(default_factory=dict)
