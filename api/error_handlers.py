import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from domain.exceptions.currency import (
	InvalidAmountError,
	InvalidCurrencyError,
	ProviderError,
	UnknownCurrencyError,
)

logger = logging.getLogger(__name__)


def currency_error_content(exc: InvalidCurrencyError) -> dict:
	content = {'detail': str(exc)}
	if isinstance(exc, UnknownCurrencyError):
		content['code'] = exc.code
	return content


def register_exception_handlers(app: FastAPI) -> None:
	@app.exception_handler(InvalidCurrencyError)
	async def invalid_currency_handler(request: Request, exc: InvalidCurrencyError):
		logger.info(f'Rejected currency on {request.url.path}: {exc}')
		return JSONResponse(status_code=400, content=currency_error_content(exc))

	@app.exception_handler(InvalidAmountError)
	async def invalid_amount_handler(request: Request, exc: InvalidAmountError):
		return JSONResponse(status_code=422, content={'detail': str(exc)})

	# Refreshes never raise source errors; this only guards direct source use.
	@app.exception_handler(ProviderError)
	async def rate_source_error_handler(request: Request, exc: ProviderError):
		logger.error(f'Rate source error on {request.url.path}: {exc}')
		return JSONResponse(
			status_code=503, content={'detail': 'Exchange rate service unavailable'}
		)
