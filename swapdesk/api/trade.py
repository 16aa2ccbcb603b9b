from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from ..core.trade import (
    Severity,
    effective_slippage,
    minimum_amount_out,
    process_slippage_input,
    route_symbols,
    slippage_label,
    slippage_warning,
    to_percent,
    trade_from_quote,
    trade_price_impact,
)
from ..errors import SwapDeskError
from ..services.balances import has_sufficient_balance
from ..services.session import SwapSession
from .deps import get_session, http_error

router = APIRouter()


class TradeMetricsRequest(BaseModel):
    quote: Dict[str, Any] = Field(description="Quote payload as returned by the routing service")
    slippage: Optional[str] = Field(default=None, description="Custom slippage percent, e.g. '0.5'")


class PriceImpactModel(BaseModel):
    percent: str
    display: str
    warning: Optional[str] = None


class SlippageModel(BaseModel):
    default: bool
    max: Optional[str] = None
    label: str
    effective: str
    warning: Optional[str] = None
    valid: bool


class TradeMetricsResponse(BaseModel):
    input_amount: str
    output_amount: str
    input_symbol: str
    output_symbol: str
    minimum_amount_out: str
    single_chain: bool
    route: List[str]
    price_impact: Optional[PriceImpactModel] = None
    slippage: SlippageModel
    sufficient_balance: bool
    messages: List[Dict[str, str]] = []


def _slippage_model(text: Optional[str]) -> SlippageModel:
    setting = process_slippage_input(text)
    severity = slippage_warning(to_percent(text))
    return SlippageModel(
        default=setting.default,
        max=setting.max,
        label=slippage_label(setting),
        effective=str(effective_slippage(setting)),
        warning=None if severity is Severity.NONE else severity.value,
        valid=to_percent(text) is not None,
    )


@router.post("/trade/metrics")
async def post_trade_metrics(
    req: TradeMetricsRequest,
    session: SwapSession = Depends(get_session),
) -> TradeMetricsResponse:
    try:
        catalog = await session.tokens.ensure_loaded()
        trade = trade_from_quote(req.quote, catalog)
        setting = process_slippage_input(req.slippage)
        minimum = minimum_amount_out(effective_slippage(setting), trade.output_amount)
    except SwapDeskError as exc:
        raise http_error(exc)

    impact = trade_price_impact(trade)
    balance = session.balances.lookup(trade.input_currency)

    return TradeMetricsResponse(
        input_amount=trade.input_amount.to_exact(),
        output_amount=trade.output_amount.to_exact(),
        input_symbol=trade.input_currency.symbol,
        output_symbol=trade.output_currency.symbol,
        minimum_amount_out=minimum.to_exact(),
        single_chain=trade.is_single_chain,
        route=route_symbols(trade, catalog),
        price_impact=(
            PriceImpactModel(percent=impact.percent.to_fixed(4), display=str(impact), warning=impact.warning)
            if impact is not None
            else None
        ),
        slippage=_slippage_model(req.slippage),
        sufficient_balance=has_sufficient_balance(balance, trade.input_amount),
        messages=[{"type": item.type, "message": item.message} for item in trade.messages],
    )


@router.get("/slippage")
async def get_slippage(
    value: Optional[str] = Query(default=None, description="Slippage percent as typed by the user"),
) -> SlippageModel:
    return _slippage_model(value)
