from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from api.dependencies import get_currency_context
from api.schemas import (
	ConversionResponse,
	CurrencyResponse,
	CurrencySelectionRequest,
	CurrentCurrencyResponse,
	FormattedPriceResponse,
	RateStatusResponse,
	RefreshResponse,
	SupportedCurrenciesResponse,
)
from application.services import CurrencyContext
from domain.models.currency import Currency

router = APIRouter(prefix='/api', tags=['currency'])


def currency_response(currency: Currency) -> CurrencyResponse:
	return CurrencyResponse(
		code=currency.code,
		name=currency.name,
		symbol=currency.symbol,
		decimal_digits=currency.decimal_digits,
		flag=currency.flag,
	)


def rate_status(context: CurrencyContext) -> RateStatusResponse:
	snapshot = context.snapshot()
	return RateStatusResponse(
		base_currency=context.base_code,
		is_loading=snapshot.is_loading,
		last_updated=snapshot.last_updated,
		last_updated_label=context.last_updated_label(),
		last_error=snapshot.last_error.value if snapshot.last_error else None,
		stale=snapshot.stale,
		source=snapshot.table.source,
		rates=dict(snapshot.table.rates),
	)


@router.get(
	'/currencies',
	response_model=SupportedCurrenciesResponse,
	status_code=status.HTTP_200_OK,
	summary='List supported currencies',
)
async def get_currencies(
	context: Annotated[CurrencyContext, Depends(get_currency_context)],
) -> SupportedCurrenciesResponse:
	return SupportedCurrenciesResponse(
		currencies=[currency_response(c) for c in context.get_currencies()],
		current=context.get_current_currency(),
	)


@router.get(
	'/currency',
	response_model=CurrentCurrencyResponse,
	status_code=status.HTTP_200_OK,
	summary='Get the selected display currency',
)
async def get_current_currency(
	context: Annotated[CurrencyContext, Depends(get_currency_context)],
) -> CurrentCurrencyResponse:
	currency = context.registry.get(context.get_current_currency())
	return CurrentCurrencyResponse(currency=currency_response(currency))


@router.put(
	'/currency',
	response_model=CurrentCurrencyResponse,
	status_code=status.HTTP_200_OK,
	summary='Select the display currency',
)
async def set_current_currency(
	request: CurrencySelectionRequest,
	context: Annotated[CurrencyContext, Depends(get_currency_context)],
) -> CurrentCurrencyResponse:
	await context.set_current_currency(request.code)
	currency = context.registry.get(context.get_current_currency())
	return CurrentCurrencyResponse(currency=currency_response(currency))


@router.get(
	'/convert',
	response_model=ConversionResponse,
	status_code=status.HTTP_200_OK,
	summary='Convert a price into the selected currency',
)
async def convert_price(
	amount: Annotated[Decimal, Query(ge=0)],
	context: Annotated[CurrencyContext, Depends(get_currency_context)],
	from_currency: str | None = None,
	with_decimals: bool = True,
) -> ConversionResponse:
	from_code = from_currency.upper() if from_currency else context.base_code
	view = context.render_pass()
	converted = view.convert(amount, from_code)

	return ConversionResponse(
		from_currency=from_code,
		to_currency=view.currency.code,
		original_amount=amount,
		converted_amount=converted,
		formatted=view.format(converted, with_decimals),
		exchange_rate=context.conversion.rate(from_code, view.currency.code, view.table),
		rates_source=view.table.source,
		stale=context.cache.is_stale(view.table),
		fetched_at=view.table.fetched_at,
	)


@router.get(
	'/format',
	response_model=FormattedPriceResponse,
	status_code=status.HTTP_200_OK,
	summary='Format an amount in the selected currency',
)
async def format_price(
	amount: Decimal,
	context: Annotated[CurrencyContext, Depends(get_currency_context)],
	with_decimals: bool = True,
) -> FormattedPriceResponse:
	return FormattedPriceResponse(
		currency=context.get_current_currency(),
		amount=amount,
		formatted=context.format_price(amount, with_decimals),
	)


@router.get(
	'/rates',
	response_model=RateStatusResponse,
	status_code=status.HTTP_200_OK,
	summary='Current rate table and refresh status',
)
async def get_rates(
	context: Annotated[CurrencyContext, Depends(get_currency_context)],
) -> RateStatusResponse:
	return rate_status(context)


@router.post(
	'/rates/refresh',
	response_model=RefreshResponse,
	status_code=status.HTTP_200_OK,
	summary='Refresh exchange rates now',
)
async def refresh_rates(
	context: Annotated[CurrencyContext, Depends(get_currency_context)],
) -> RefreshResponse:
	outcome = await context.refresh_rates()
	return RefreshResponse(
		result=outcome.result.value,
		error=outcome.error.value if outcome.error else None,
		message=outcome.message,
		status=rate_status(context),
	)
