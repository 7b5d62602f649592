import time
from datetime import UTC, datetime


def now_millis() -> int:
	"""Current wall-clock time as epoch milliseconds."""
	return time.time_ns() // 1_000_000


def millis_to_datetime(value: int) -> datetime:
	return datetime.fromtimestamp(value / 1000, tz=UTC)


def seconds_to_millis(value: float) -> int:
	return int(value * 1000)
