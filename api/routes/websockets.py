import asyncio
import logging
from collections.abc import Callable
from typing import Annotated

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from api.dependencies import get_currency_context
from application.services import CurrencyContext
from domain.models.currency import ContextEvent, ContextSnapshot

logger = logging.getLogger(__name__)

router = APIRouter(prefix='/api', tags=['websockets'])

EVENT_QUEUE_SIZE = 64


def snapshot_payload(snapshot: ContextSnapshot) -> dict:
	return {
		'current_currency': snapshot.current_currency,
		'is_loading': snapshot.is_loading,
		'last_updated': snapshot.last_updated,
		'last_error': snapshot.last_error.value if snapshot.last_error else None,
		'stale': snapshot.stale,
		'source': snapshot.table.source,
		'rates': {code: str(rate) for code, rate in snapshot.table.rates.items()},
	}


def event_payload(event: ContextEvent) -> dict:
	details = {
		key: getattr(value, 'value', value) for key, value in event.details.items()
	}
	return {
		'type': event.kind.value,
		'details': details,
		'state': snapshot_payload(event.snapshot),
	}


def event_enqueuer(queue: asyncio.Queue) -> Callable[[ContextEvent], None]:
	"""Subscriber that feeds ``queue``, dropping the oldest event when a slow client lets it fill up."""

	def enqueue(event: ContextEvent) -> None:
		if queue.full():
			queue.get_nowait()
			logger.debug(f'WebSocket event queue full, dropped oldest event before {event.kind.value}')
		queue.put_nowait(event)

	return enqueue

class ConnectionManager:
	"""Tracks open websocket connections."""

	def __init__(self):
		self.active_connections: set[WebSocket] = set()

	async def connect(self, websocket: WebSocket) -> None:
		await websocket.accept()
		self.active_connections.add(websocket)
		logger.info(f'New WebSocket connection. Total connections: {len(self.active_connections)}')

	def disconnect(self, websocket: WebSocket) -> None:
		if websocket in self.active_connections:
			self.active_connections.discard(websocket)
			logger.info(
				f'WebSocket disconnected. Remaining connections: {len(self.active_connections)}'
			)


manager = ConnectionManager()


@router.websocket('/ws/currency')
async def currency_events(
	websocket: WebSocket,
	context: Annotated[CurrencyContext, Depends(get_currency_context)],
):
	"""Pushes every currency state transition (selection, loading, commits, failures)."""
	await manager.connect(websocket)
	queue: asyncio.Queue[ContextEvent] = asyncio.Queue(maxsize=EVENT_QUEUE_SIZE)
	unsubscribe = context.subscribe(event_enqueuer(queue))

	async def forward_events() -> None:
		while True:
			event = await queue.get()
			await websocket.send_json(event_payload(event))

	forwarder: asyncio.Task | None = None
	try:
		await websocket.send_json(
			{'type': 'connection_established', 'state': snapshot_payload(context.snapshot())}
		)
		forwarder = asyncio.create_task(forward_events())
		while True:
			message = await websocket.receive_text()
			if message == 'ping':
				await websocket.send_json({'type': 'pong'})
	except WebSocketDisconnect:
		logger.info('Client disconnected')
	finally:
		unsubscribe()
		if forwarder is not None:
			forwarder.cancel()
			await asyncio.gather(forwarder, return_exceptions=True)
		manager.disconnect(websocket)


@router.get('/ws/stats', summary='WebSocket connection statistics')
async def websocket_stats():
	return {'total_connections': len(manager.active_connections)}
