"""
Tests for the balance cache: fetch dedup, native correction and merging.
"""

import asyncio

import pytest

from conftest import (
    EVM_ACCOUNT,
    NATIVE,
    OTHER_EVM_ACCOUNT,
    STARK_ETH,
    STARKNET_ACCOUNT,
    USDC_MAINNET,
    ZERO,
    FakeBalanceProvider,
)
from swapdesk.core.chains import AccountClass
from swapdesk.core.currency import CurrencyAmount, NativeCurrency, Token
from swapdesk.errors import ConfigurationFailure, FetchFailure, ParseFailure
from swapdesk.services.balances import (
    Balance,
    BalanceCache,
    has_sufficient_balance,
    merge_balances,
    native_balance_correction,
)

ETH = NativeCurrency(chain_id=1, decimals=18, symbol="ETH")
USDC = Token(chain_id=1, address=USDC_MAINNET, decimals=6, symbol="USDC")
STARKNET_ETH = Token(chain_id=15366, address=STARK_ETH, decimals=18, symbol="ETH")


def balance(chain_id, address, raw, decimals=18, symbol="TKN"):
    return {
        "chainId": chain_id,
        "address": address,
        "balance": str(raw),
        "decimals": decimals,
        "symbol": symbol,
        "name": symbol,
    }


EVM_BALANCES = [
    balance(1, ZERO, 10 ** 18, symbol="ETH"),
    balance(1, USDC_MAINNET, 2_500_000, decimals=6, symbol="USDC"),
]
STARKNET_BALANCES = [balance(15366, STARK_ETH, 5 * 10 ** 17, symbol="ETH")]


def make_cache(provider=None, starknet_provider=None):
    provider = provider or FakeBalanceProvider({EVM_ACCOUNT: EVM_BALANCES})
    providers = {AccountClass.EVM: provider}
    if starknet_provider is not None:
        providers[AccountClass.STARKNET] = starknet_provider
    return BalanceCache(providers)


# =============================================================================
# Pure helpers
# =============================================================================

class TestNativeCorrection:

    @pytest.mark.parametrize("raw,expected", [(10, 8), (2, 0), (1, 0), (0, 0), (10 ** 18, 10 ** 18 - 2)])
    def test_headroom_withheld(self, raw, expected):
        assert native_balance_correction(raw) == expected

    def test_applied_only_to_native(self):
        merged = merge_balances([[
            Balance.from_api(balance(1, ZERO, 10)),
            Balance.from_api(balance(1, USDC_MAINNET, 10, decimals=6)),
        ]])
        assert merged[1][NATIVE].raw == 8
        assert merged[1][USDC_MAINNET].raw == 10


class TestBalanceParsing:

    def test_sentinel_aliased(self):
        parsed = Balance.from_api(balance(1, ZERO, 5))
        assert parsed.address == NATIVE
        assert parsed.is_native
        assert isinstance(parsed.to_currency(), NativeCurrency)

    @pytest.mark.parametrize("data", [
        {"chainId": 1, "address": ZERO},
        {"chainId": 1, "address": ZERO, "balance": "-3"},
        {"chainId": "x", "address": ZERO, "balance": "3"},
    ])
    def test_malformed_entries_rejected(self, data):
        with pytest.raises(ParseFailure):
            Balance.from_api(data)

    def test_later_list_wins_on_merge(self):
        merged = merge_balances([
            [Balance.from_api(balance(1, USDC_MAINNET, 1, decimals=6))],
            [Balance.from_api(balance(1, USDC_MAINNET, 7, decimals=6))],
        ])
        assert merged[1][USDC_MAINNET].raw == 7


def test_has_sufficient_balance():
    held = CurrencyAmount(currency=USDC, raw=100)
    assert has_sufficient_balance(held, CurrencyAmount(currency=USDC, raw=100))
    assert not has_sufficient_balance(held, CurrencyAmount(currency=USDC, raw=101))
    assert not has_sufficient_balance(None, CurrencyAmount(currency=USDC, raw=1))
    assert not has_sufficient_balance(held, None)


# =============================================================================
# BalanceCache
# =============================================================================

class TestBalanceCache:

    @pytest.mark.asyncio
    async def test_single_fetch_per_account(self):
        gate = asyncio.Event()
        provider = FakeBalanceProvider({EVM_ACCOUNT: EVM_BALANCES}, gate=gate)
        cache = make_cache(provider)

        first = cache.ensure_fetch_dispatched(AccountClass.EVM, EVM_ACCOUNT)
        second = cache.ensure_fetch_dispatched(AccountClass.EVM, EVM_ACCOUNT)
        cache.set_active_account(AccountClass.EVM, EVM_ACCOUNT)
        assert first is second

        gate.set()
        await cache.wait_for_pending()
        cache.ensure_fetch_dispatched(AccountClass.EVM, EVM_ACCOUNT)
        await cache.wait_for_pending()

        assert provider.calls == [EVM_ACCOUNT]

    @pytest.mark.asyncio
    async def test_lookup_after_fetch(self):
        cache = make_cache()
        cache.set_active_account(AccountClass.EVM, EVM_ACCOUNT)
        assert cache.lookup(USDC) is None

        await cache.wait_for_pending()

        assert cache.lookup(USDC).raw == 2_500_000
        assert cache.lookup(ETH).raw == 10 ** 18 - 2
        assert cache.lookup(None) is None
        assert cache.lookup(Token(chain_id=1, address="0xdead", decimals=18)) is None

    @pytest.mark.asyncio
    async def test_failure_absorbed_and_not_retried(self):
        provider = FakeBalanceProvider(error=FetchFailure("boom", provider="fake", status_code=503))
        cache = make_cache(provider)

        cache.set_active_account(AccountClass.EVM, EVM_ACCOUNT)
        await cache.wait_for_pending()

        assert cache.lookup(USDC) is None
        assert cache.current_balance_map() == {}
        assert cache.is_dispatched(AccountClass.EVM, EVM_ACCOUNT)
        assert not cache.is_fetched(AccountClass.EVM, EVM_ACCOUNT)
        assert isinstance(cache.fetch_error(AccountClass.EVM, EVM_ACCOUNT), FetchFailure)

        cache.set_active_account(AccountClass.EVM, EVM_ACCOUNT)
        await cache.wait_for_pending()
        assert provider.calls == [EVM_ACCOUNT]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [TimeoutError("hung"), RuntimeError("provider bug")])
    async def test_unexpected_provider_error_recorded(self, error):
        provider = FakeBalanceProvider(error=error)
        cache = make_cache(provider)

        cache.set_active_account(AccountClass.EVM, EVM_ACCOUNT)
        await cache.wait_for_pending()

        assert cache.fetch_error(AccountClass.EVM, EVM_ACCOUNT) is error
        assert cache.lookup(USDC) is None
        assert cache.current_balance_map() == {}
        assert not cache.is_fetched(AccountClass.EVM, EVM_ACCOUNT)

    @pytest.mark.asyncio
    async def test_non_list_payload_recorded(self):
        provider = FakeBalanceProvider()

        async def get_balances(address):
            return None

        provider.get_balances = get_balances
        cache = make_cache(provider)

        cache.set_active_account(AccountClass.EVM, EVM_ACCOUNT)
        await cache.wait_for_pending()

        assert isinstance(cache.fetch_error(AccountClass.EVM, EVM_ACCOUNT), TypeError)
        assert cache.current_balance_map() == {}

    @pytest.mark.asyncio
    async def test_malformed_entries_dropped(self):
        provider = FakeBalanceProvider({EVM_ACCOUNT: [*EVM_BALANCES, {"chainId": 1}]})
        cache = make_cache(provider)
        cache.set_active_account(AccountClass.EVM, EVM_ACCOUNT)
        await cache.wait_for_pending()
        assert len(cache.current_balance_map()[1]) == 2

    @pytest.mark.asyncio
    async def test_evm_and_starknet_accounts_merge(self):
        evm = FakeBalanceProvider({EVM_ACCOUNT: EVM_BALANCES})
        starknet = FakeBalanceProvider({STARKNET_ACCOUNT: STARKNET_BALANCES})
        cache = make_cache(evm, starknet)

        cache.set_active_account(AccountClass.EVM, EVM_ACCOUNT)
        cache.set_active_account(AccountClass.STARKNET, STARKNET_ACCOUNT)
        await cache.wait_for_pending()

        balance_map = cache.current_balance_map()
        assert set(balance_map) == {1, 15366}
        assert cache.lookup(STARKNET_ETH).raw == 5 * 10 ** 17
        assert cache.account_for_currency(STARKNET_ETH) == STARKNET_ACCOUNT
        assert cache.account_for_currency(USDC) == EVM_ACCOUNT

    @pytest.mark.asyncio
    async def test_switching_accounts_invalidates_view(self):
        provider = FakeBalanceProvider({
            EVM_ACCOUNT: EVM_BALANCES,
            OTHER_EVM_ACCOUNT: [balance(1, USDC_MAINNET, 42, decimals=6)],
        })
        cache = make_cache(provider)

        cache.set_active_account(AccountClass.EVM, EVM_ACCOUNT)
        await cache.wait_for_pending()
        first_view = cache.current_balance_map()
        assert cache.current_balance_map() is first_view

        cache.set_active_account(AccountClass.EVM, OTHER_EVM_ACCOUNT)
        await cache.wait_for_pending()
        assert cache.lookup(USDC).raw == 42
        assert cache.lookup(ETH) is None

        cache.set_active_account(AccountClass.EVM, EVM_ACCOUNT)
        assert cache.lookup(USDC).raw == 2_500_000
        assert provider.calls == [EVM_ACCOUNT, OTHER_EVM_ACCOUNT]

    @pytest.mark.asyncio
    async def test_disconnect_clears_view(self):
        cache = make_cache()
        cache.set_active_account(AccountClass.EVM, EVM_ACCOUNT)
        await cache.wait_for_pending()

        cache.set_active_account(AccountClass.EVM, None)
        assert cache.current_balance_map() == {}
        assert cache.active_accounts[AccountClass.EVM] is None

    @pytest.mark.asyncio
    async def test_missing_provider_is_configuration_failure(self):
        cache = make_cache()
        with pytest.raises(ConfigurationFailure):
            cache.set_active_account(AccountClass.STARKNET, STARKNET_ACCOUNT)

    @pytest.mark.asyncio
    async def test_aclose_cancels_in_flight_fetch(self):
        gate = asyncio.Event()
        provider = FakeBalanceProvider({EVM_ACCOUNT: EVM_BALANCES}, gate=gate)
        cache = make_cache(provider)
        task = cache.ensure_fetch_dispatched(AccountClass.EVM, EVM_ACCOUNT)
        await asyncio.sleep(0)

        await cache.aclose()

        assert task.cancelled()
        assert not cache.is_fetched(AccountClass.EVM, EVM_ACCOUNT)
