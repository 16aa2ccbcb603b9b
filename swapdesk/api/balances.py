from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from ..errors import SwapDeskError
from ..services.session import SwapSession
from .deps import get_session, http_error

router = APIRouter()


class AccountsRequest(BaseModel):
    evm_address: Optional[str] = Field(default=None, description="Connected EVM account")
    starknet_address: Optional[str] = Field(default=None, description="Connected StarkNet account")
    evm_chain_id: Optional[int] = Field(default=None, description="Chain the EVM wallet is on")


def _account_status(session: SwapSession) -> Dict[str, Any]:
    status: Dict[str, Any] = {}
    for account_class, address in session.balances.active_accounts.items():
        entry: Dict[str, Any] = {"address": address}
        if address:
            error = session.balances.fetch_error(account_class, address)
            entry["fetched"] = session.balances.is_fetched(account_class, address)
            entry["error"] = str(error) if error else None
        status[account_class.value] = entry
    return status


@router.put("/accounts")
async def put_accounts(req: AccountsRequest, session: SwapSession = Depends(get_session)) -> Dict[str, Any]:
    try:
        session.connect(
            evm_address=req.evm_address,
            starknet_address=req.starknet_address,
            evm_chain_id=req.evm_chain_id,
        )
    except SwapDeskError as exc:
        raise http_error(exc)
    return {"accounts": _account_status(session)}


@router.get("/balances")
async def get_balances(
    wait: bool = Query(default=True, description="Wait for in-flight balance fetches"),
    session: SwapSession = Depends(get_session),
) -> Dict[str, Any]:
    if wait:
        await session.balances.wait_for_pending()

    balance_map = session.balances.current_balance_map()
    balances = {
        str(chain_id): {
            address: {
                "symbol": amount.currency.symbol,
                "decimals": amount.currency.decimals,
                "raw": str(amount.raw),
                "formatted": amount.to_exact(),
            }
            for address, amount in by_address.items()
        }
        for chain_id, by_address in balance_map.items()
    }
    return {
        "accounts": _account_status(session),
        "balances": balances,
    }
