#!/usr/bin/env python3
"""Command line access to the aggregation session, for local checks"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import List, Optional

from .config import settings
from .core.catalog import TokenPreset
from .core.trade import (
    effective_slippage,
    minimum_amount_out,
    process_slippage_input,
    route_symbols,
    slippage_label,
    trade_from_quote,
    trade_price_impact,
)
from .errors import SwapDeskError, ValidationFailure
from .logging_config import setup_logging
from .services.session import SwapSession


def print_tokens(tokens, title: str) -> None:
    print(f"\n🪙 {title}")
    print("=" * 50)
    for token in sorted(tokens, key=lambda t: (t.chain_id, t.symbol)):
        print(f"{token.chain_id:>10}  {token.symbol:<8} {token.address}")
    print(f"\n{len(tokens)} tokens")


def parse_preset(text: str) -> TokenPreset:
    """Parse a CHAIN:ADDRESS preset argument"""
    chain, sep, address = text.partition(":")
    if not sep or not address.strip():
        raise ValidationFailure(f"Preset {text!r} is not CHAIN:ADDRESS")
    try:
        chain_id = int(chain)
    except ValueError:
        raise ValidationFailure(f"Preset {text!r} has a non-numeric chain id") from None
    return TokenPreset(chain_id=chain_id, address=address.strip())


async def cli_tokens(session: SwapSession, chain_id: Optional[int], presets: List[str]) -> None:
    """List picker tokens, optionally restricted by chain:address presets"""
    await session.tokens.initialize()
    catalog = session.tokens.catalog

    if chain_id is not None:
        print_tokens(list(catalog.token_map(chain_id).values()), f"Tokens on chain {chain_id}")
        return

    parsed = [parse_preset(preset) for preset in presets]
    print_tokens(catalog.select_tokens(parsed, settings.visible_chain_ids), "Picker tokens")


async def cli_balances(session: SwapSession, evm: Optional[str], starknet: Optional[str]) -> None:
    """Fetch and print the merged balance map of the given accounts"""
    session.connect(evm_address=evm, starknet_address=starknet)
    await session.balances.wait_for_pending()

    for account_class, address in session.balances.active_accounts.items():
        if not address:
            continue
        error = session.balances.fetch_error(account_class, address)
        if error is not None:
            print(f"⚠️  {account_class.value} balances unavailable for {address}: {error}")

    balance_map = session.balances.current_balance_map()
    if not balance_map:
        print("❌ No balances available")
        return

    print("\n💰 Balances")
    print("=" * 50)
    for chain_id in sorted(balance_map):
        for amount in balance_map[chain_id].values():
            print(f"{chain_id:>10}  {amount.to_fixed(6):>24} {amount.currency.symbol}")


async def cli_metrics(session: SwapSession, quote_path: Path, slippage: Optional[str]) -> None:
    """Print minimum received, price impact and route for a saved quote"""
    try:
        payload = json.loads(quote_path.read_text())
    except (OSError, ValueError) as exc:
        raise ValidationFailure(f"Cannot read quote file {quote_path}: {exc}") from exc
    await session.tokens.initialize()
    trade = trade_from_quote(payload, session.tokens.catalog)

    setting = process_slippage_input(slippage)
    minimum = minimum_amount_out(effective_slippage(setting), trade.output_amount)
    impact = trade_price_impact(trade)

    print("\n📈 Trade")
    print("=" * 50)
    print(f"You pay:          {trade.input_amount.to_exact()} {trade.input_currency.symbol}")
    print(f"You receive:      {trade.output_amount.to_exact()} {trade.output_currency.symbol}")
    print(f"Minimum received: {minimum.to_exact()} {trade.output_currency.symbol}")
    print(f"Slippage:         {slippage_label(setting)}")
    if impact is not None:
        flag = f" [{impact.warning.upper()}]" if impact.warning else ""
        print(f"Price impact:     {impact}{flag}")
    print(f"Route:            {' → '.join(route_symbols(trade, session.tokens.catalog))}")
    for message in trade.messages:
        print(f" - [{message.type.upper()}] {message.message}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="swapdesk CLI")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command")

    tokens_parser = subparsers.add_parser("tokens", help="List supported tokens")
    tokens_parser.add_argument("--chain", type=int, help="Only tokens on this chain")
    tokens_parser.add_argument(
        "--preset",
        action="append",
        default=[],
        metavar="CHAIN:ADDRESS",
        help="Restrict the picker to these tokens (repeatable)",
    )

    balances_parser = subparsers.add_parser("balances", help="Show merged balances")
    balances_parser.add_argument("--evm", help="EVM account address")
    balances_parser.add_argument("--starknet", help="StarkNet account address")

    metrics_parser = subparsers.add_parser("metrics", help="Evaluate a saved quote response")
    metrics_parser.add_argument("quote", type=Path, help="Path to a quote JSON file")
    metrics_parser.add_argument("--slippage", help="Custom slippage percent, e.g. 0.5")

    return parser


async def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    setup_logging(args.log_level)

    async with SwapSession.from_settings() as session:
        try:
            if args.command == "tokens":
                await cli_tokens(session, args.chain, args.preset)
            elif args.command == "balances":
                if not (args.evm or args.starknet):
                    parser.error("balances needs --evm and/or --starknet")
                await cli_balances(session, args.evm, args.starknet)
            elif args.command == "metrics":
                await cli_metrics(session, args.quote, args.slippage)
        except SwapDeskError as e:
            print(f"❌ Error: {e}")
            return 1
    return 0


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
