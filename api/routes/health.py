import logging
from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends

from api.dependencies import get_currency_context
from api.schemas import HealthResponse
from application.services import CurrencyContext

logger = logging.getLogger(__name__)

router = APIRouter(prefix='/api', tags=['health'])


@router.get(
	'/health',
	response_model=HealthResponse,
	summary='Service health check',
	description='Reports whether rates are fresh and the refresh schedule is running',
)
async def health_check(
	context: Annotated[CurrencyContext, Depends(get_currency_context)],
) -> HealthResponse:
	snapshot = context.snapshot()
	degraded = snapshot.stale or snapshot.table.is_bootstrap or snapshot.last_error is not None
	if degraded:
		logger.debug(
			f'Health check degraded (source {snapshot.table.source}, stale={snapshot.stale}, '
			f'last_error={snapshot.last_error})'
		)

	return HealthResponse(
		status='degraded' if degraded else 'healthy',
		timestamp=datetime.now(UTC),
		rates_source=snapshot.table.source,
		stale=snapshot.stale,
		last_error=snapshot.last_error.value if snapshot.last_error else None,
		refresh_scheduled=context.scheduler_active,
	)
