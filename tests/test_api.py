import json

import pytest
from fastapi.testclient import TestClient

from conftest import (
    EVM_ACCOUNT,
    GNOSIS_USDC,
    NATIVE,
    STARKNET_ACCOUNT,
    USDC_MAINNET,
    USDC_POLYGON,
    ZERO,
    FakeBalanceProvider,
    FakeTokenListProvider,
    token_list,
)
from swapdesk.core.chains import AccountClass
from swapdesk.errors import FetchFailure
from swapdesk.main import create_app
from swapdesk.services.session import SwapSession
from swapdesk.services.store import MemoryKeyValueStore
from swapdesk.services.token_cache import TOKEN_LIST_STORE_KEY

EVM_BALANCES = [
    {"chainId": 1, "address": ZERO, "balance": "1000000000000000000", "decimals": 18, "symbol": "ETH", "name": "Ether"},
    {"chainId": 1, "address": USDC_MAINNET, "balance": "2500000", "decimals": 6, "symbol": "USDC", "name": "USD Coin"},
]

QUOTE = {
    "inputAmount": "2000000",
    "outputAmount": "1000000000000000",
    "inputAmountUsdValue": "2.00",
    "outputAmountUsdValue": "1.80",
    "steps": [{"protocol": "uniswap", "chainId": 1, "fromToken": USDC_MAINNET, "toToken": ZERO, "toChainId": 1}],
    "messages": [{"type": "info", "message": "Best route"}],
}


def make_client(token_provider=None, balance_provider=None, store=None):
    def factory():
        return SwapSession(
            token_provider=token_provider or FakeTokenListProvider(),
            balance_providers={
                AccountClass.EVM: balance_provider or FakeBalanceProvider({EVM_ACCOUNT: EVM_BALANCES}),
                AccountClass.STARKNET: FakeBalanceProvider(),
            },
            store=store if store is not None else MemoryKeyValueStore(),
        )

    return TestClient(create_app(factory))


@pytest.fixture
def client():
    with make_client() as test_client:
        yield test_client


def test_healthz(client):
    client.get("/tokens")
    resp = client.get("/healthz")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert data["catalog"] == {"loaded": True, "chains": 4, "error": None}
    assert set(data["providers"]) == {"token_list", "balances_evm", "balances_starknet"}


def test_request_id_header_echoed(client):
    resp = client.get("/", headers={"x-request-id": "abc123"})
    assert resp.status_code == 200
    assert resp.headers["x-request-id"] == "abc123"


def test_list_visible_tokens(client):
    resp = client.get("/tokens")
    assert resp.status_code == 200
    addresses = {token["address"] for token in resp.json()["tokens"]}
    assert NATIVE in addresses
    assert ZERO not in addresses
    assert GNOSIS_USDC not in addresses
    assert resp.json()["stale"] is False


def test_list_tokens_by_chain(client):
    resp = client.get("/tokens", params={"chain_id": 100})
    assert resp.json()["count"] == 1
    assert client.get("/tokens", params={"chain_id": 999}).status_code == 404
    assert client.get("/tokens", params={"all_chains": True}).json()["count"] == 6


def test_select_tokens_with_presets(client):
    resp = client.post(
        "/tokens/select",
        json={"side": "to", "presets": [{"chainId": 137, "address": USDC_POLYGON}, {"chainId": 1, "address": "0xdead"}]},
    )
    assert resp.status_code == 200
    assert [token["address"] for token in resp.json()["tokens"]] == [USDC_POLYGON]


def test_token_list_unavailable_is_bad_gateway():
    provider = FakeTokenListProvider(error=FetchFailure("down", provider="tokens", status_code=500))
    with make_client(token_provider=provider) as test_client:
        resp = test_client.get("/tokens")
    assert resp.status_code == 502


def test_failed_refresh_serves_persisted_tokens_as_stale():
    store = MemoryKeyValueStore()
    store.set(TOKEN_LIST_STORE_KEY, json.dumps(token_list()).encode("utf-8"))
    provider = FakeTokenListProvider(error=FetchFailure("down", provider="tokens", status_code=500))

    with make_client(token_provider=provider, store=store) as test_client:
        tokens_resp = test_client.get("/tokens")
        health_resp = test_client.get("/healthz")

    assert tokens_resp.status_code == 200
    data = tokens_resp.json()
    assert data["count"] > 0
    assert data["stale"] is True
    assert "down" in data["error"]

    health = health_resp.json()
    assert health["status"] == "degraded"
    assert health["catalog"]["loaded"] is True
    assert "down" in health["catalog"]["error"]


def test_accounts_and_balances(client):
    resp = client.put("/accounts", json={"evm_address": EVM_ACCOUNT, "starknet_address": STARKNET_ACCOUNT})
    assert resp.status_code == 200

    resp = client.get("/balances")
    assert resp.status_code == 200
    data = resp.json()
    assert data["balances"]["1"][USDC_MAINNET]["formatted"] == "2.5"
    assert data["balances"]["1"][NATIVE]["raw"] == "999999999999999998"
    assert data["accounts"]["evm"] == {"address": EVM_ACCOUNT, "fetched": True, "error": None}
    assert data["accounts"]["starknet"]["fetched"] is True


def test_balance_failure_reported_not_raised():
    provider = FakeBalanceProvider(error=FetchFailure("timeout", provider="balances"))
    with make_client(balance_provider=provider) as test_client:
        test_client.put("/accounts", json={"evm_address": EVM_ACCOUNT})
        resp = test_client.get("/balances")
    assert resp.status_code == 200
    assert resp.json()["balances"] == {}
    assert resp.json()["accounts"]["evm"]["error"] == "timeout"


def test_trade_metrics(client):
    client.put("/accounts", json={"evm_address": EVM_ACCOUNT})
    client.get("/balances")

    resp = client.post("/trade/metrics", json={"quote": QUOTE, "slippage": "0.5"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["input_symbol"] == "USDC"
    assert data["output_symbol"] == "ETH"
    assert data["minimum_amount_out"] == "0.000995"
    assert data["route"] == ["USDC", "ETH"]
    assert data["price_impact"] == {"percent": "-10.0000", "display": "-10%", "warning": "error"}
    assert data["slippage"]["effective"] == "0.50%"
    assert data["sufficient_balance"] is True
    assert data["messages"] == [{"type": "info", "message": "Best route"}]


def test_trade_metrics_default_slippage(client):
    resp = client.post("/trade/metrics", json={"quote": QUOTE})
    data = resp.json()
    assert data["minimum_amount_out"] == "0.00099"
    assert data["slippage"]["default"] is True
    assert data["sufficient_balance"] is False


def test_trade_metrics_rejects_unknown_token(client):
    quote = dict(QUOTE, steps=[{"protocol": "x", "chainId": 1, "fromToken": "0xdead", "toToken": ZERO, "toChainId": 1}])
    resp = client.post("/trade/metrics", json={"quote": quote})
    assert resp.status_code == 422


def test_slippage_endpoint(client):
    assert client.get("/slippage", params={"value": "0.5"}).json() == {
        "default": False,
        "max": "0.5",
        "label": "0.5%",
        "effective": "0.50%",
        "warning": None,
        "valid": True,
    }
    high = client.get("/slippage", params={"value": "60"}).json()
    assert high["default"] is True
    assert high["warning"] == "error"
    assert high["effective"] == "1.00%"
    assert client.get("/slippage").json()["valid"] is False
