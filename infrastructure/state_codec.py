import json
import logging

from domain.exceptions.currency import MalformedResponseError, StateDecodeError
from domain.models.currency import PersistedState, RateTable
from domain.registry import CurrencyRegistry
from infrastructure.providers.base import build_rates

logger = logging.getLogger(__name__)

STATE_VERSION = 1


def encode_table(table: RateTable) -> dict:
	return {
		'base_code': table.base_code,
		'rates': {code: str(rate) for code, rate in table.rates.items()},
		'fetched_at': table.fetched_at,
		'fetch_started_at': table.fetch_started_at,
		'source': table.source,
		'published_at': table.published_at,
	}


def decode_table(data: object, registry: CurrencyRegistry, base_code: str) -> RateTable:
	if not isinstance(data, dict):
		raise StateDecodeError('Persisted table must be an object')
	if data.get('base_code') != base_code:
		raise StateDecodeError(
			f'Persisted table base {data.get("base_code")!r} does not match {base_code}'
		)

	try:
		rates = build_rates(data.get('rates'), base_code, registry)
	except MalformedResponseError as e:
		raise StateDecodeError(f'Persisted table is malformed: {e}') from e

	fetched_at = data.get('fetched_at')
	fetch_started_at = data.get('fetch_started_at')
	published_at = data.get('published_at')
	for field_name, value in (('fetched_at', fetched_at), ('fetch_started_at', fetch_started_at)):
		if isinstance(value, bool) or not isinstance(value, int) or value < 0:
			raise StateDecodeError(f'Persisted table has invalid {field_name}: {value!r}')
	if published_at is not None and (isinstance(published_at, bool) or not isinstance(published_at, int)):
		raise StateDecodeError(f'Persisted table has invalid published_at: {published_at!r}')

	source = data.get('source')
	if not isinstance(source, str) or not source:
		raise StateDecodeError('Persisted table has no source')

	return RateTable(
		base_code=base_code,
		rates=rates,
		fetched_at=fetched_at,
		fetch_started_at=fetch_started_at,
		source=source,
		published_at=published_at,
	)


def dump_state(state: PersistedState) -> str:
	return json.dumps(
		{
			'version': STATE_VERSION,
			'selected_code': state.selected_code,
			'table': encode_table(state.table) if state.table is not None else None,
		}
	)


def load_state(raw: str | bytes, registry: CurrencyRegistry, base_code: str) -> PersistedState:
	"""
	Decode the persisted record.

	An undecodable envelope raises StateDecodeError. A malformed table is
	dropped with a warning so the selection survives; the selected code is
	returned as stored and validated by the caller.
	"""
	try:
		data = json.loads(raw)
	except (TypeError, ValueError) as e:
		raise StateDecodeError(f'Invalid json data: {e}') from e

	if not isinstance(data, dict):
		raise StateDecodeError('Persisted state must be an object')

	selected_code = data.get('selected_code')
	if not isinstance(selected_code, str):
		selected_code = ''

	table = None
	if data.get('table') is not None:
		try:
			table = decode_table(data['table'], registry, base_code)
		except StateDecodeError as e:
			logger.warning(f'Discarding persisted rate table: {e}')

	return PersistedState(selected_code=selected_code, table=table)
