"""
Quote payload parsing.

The routing service is a black box; only the amounts, USD values and the
ordered route steps of its response are read here. The user-facing input is
the first step's ``fromToken`` and the output is the last step's ``toToken``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from ...errors import ParseFailure, ValidationFailure
from ..catalog import ChainTokenMap
from ..currency import Currency, CurrencyAmount, to_fraction
from .models import Step, Trade, TradeMessage

logger = logging.getLogger(__name__)


def parse_step(data: Dict[str, Any]) -> Step:
    if not isinstance(data, dict):
        raise ParseFailure(f"Route step must be an object, got {type(data).__name__}")
    try:
        chain_id = int(data["chainId"])
        return Step(
            protocol=str(data.get("protocol") or ""),
            chain_id=chain_id,
            from_token=str(data["fromToken"]),
            to_token=str(data["toToken"]),
            to_chain_id=int(data.get("toChainId", chain_id)),
            function_name=data.get("functionName"),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise ParseFailure(f"Malformed route step: {exc}") from exc


def _endpoints(payload: Dict[str, Any], steps: List[Step]) -> Tuple[Tuple[Any, Any], Tuple[Any, Any]]:
    if steps:
        first, last = steps[0], steps[-1]
        return (first.chain_id, first.from_token), (last.to_chain_id, last.to_token)
    return (
        (payload.get("fromChainId"), payload.get("fromToken")),
        (payload.get("toChainId"), payload.get("toToken")),
    )


def _resolve_currency(catalog: ChainTokenMap, chain_id: Any, address: Any, side: str) -> Currency:
    if chain_id is None or not address:
        raise ParseFailure(f"Quote does not identify the {side} token")
    try:
        descriptor = catalog.get(int(chain_id), str(address))
    except (TypeError, ValueError) as exc:
        raise ParseFailure(f"Malformed {side} chain id: {chain_id!r}") from exc
    if descriptor is None:
        raise ParseFailure(f"{side.capitalize()} token {chain_id}:{address} is not in the token catalog")
    return descriptor.to_currency()


def _amount(currency: Currency, raw: Any, field_name: str) -> CurrencyAmount:
    if raw is None:
        raise ParseFailure(f"Quote is missing {field_name}")
    try:
        return CurrencyAmount.from_raw_amount(currency, raw if isinstance(raw, int) else str(raw))
    except ValidationFailure as exc:
        raise ParseFailure(f"Malformed {field_name}: {exc}") from exc


def _usd_value(payload: Dict[str, Any], field_name: str):
    value = payload.get(field_name)
    if value is None or value == "":
        return None
    try:
        return to_fraction(value)
    except ValidationFailure:
        logger.warning("Ignoring unparsable %s in quote: %r", field_name, value)
        return None


def trade_from_quote(payload: Dict[str, Any], catalog: ChainTokenMap) -> Trade:
    """
    Build a Trade from a routing-service quote.

    Args:
        payload: Quote response (inputAmount, outputAmount, USD values, steps, messages).
        catalog: Token catalog used to resolve the input and output currencies.

    Returns:
        Trade with exact amounts; USD values are None when the quote omits them.

    Raises:
        ParseFailure: the payload is malformed or names a token the catalog lacks.
    """
    if not isinstance(payload, dict):
        raise ParseFailure(f"Quote payload must be an object, got {type(payload).__name__}")

    raw_steps = payload.get("steps") or []
    if not isinstance(raw_steps, list):
        raise ParseFailure("Quote steps must be a list")
    steps = [parse_step(step) for step in raw_steps]

    (in_chain, in_address), (out_chain, out_address) = _endpoints(payload, steps)
    input_currency = _resolve_currency(catalog, in_chain, in_address, "input")
    output_currency = _resolve_currency(catalog, out_chain, out_address, "output")

    messages: List[TradeMessage] = []
    for item in payload.get("messages") or []:
        if isinstance(item, dict) and item.get("message"):
            messages.append(TradeMessage(type=str(item.get("type") or "info"), message=str(item["message"])))

    return Trade(
        input_amount=_amount(input_currency, payload.get("inputAmount"), "inputAmount"),
        output_amount=_amount(output_currency, payload.get("outputAmount"), "outputAmount"),
        steps=steps,
        input_usd_value=_usd_value(payload, "inputAmountUsdValue"),
        output_usd_value=_usd_value(payload, "outputAmountUsdValue"),
        messages=messages,
    )


def route_symbols(trade: Trade, catalog: ChainTokenMap) -> List[str]:
    """Token symbols along the route, start to end. Unknown hops render as their address."""
    symbols: List[str] = []
    for index, step in enumerate(trade.steps):
        if index == 0:
            start = catalog.get(step.chain_id, step.from_token)
            symbols.append(start.symbol if start else step.from_token)
        end: Optional[Any] = catalog.get(step.to_chain_id, step.to_token)
        symbols.append(end.symbol if end else step.to_token)
    return symbols
