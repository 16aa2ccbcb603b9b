from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field

from ..config import settings
from ..core.catalog import ChainTokenMap, TokenDescriptor, TokenPreset
from ..errors import SwapDeskError
from ..services.session import SwapSession
from .deps import get_session, http_error

router = APIRouter(prefix="/tokens")


class TokenPresetModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    chain_id: int = Field(alias="chainId")
    address: str


class TokenSelectRequest(BaseModel):
    side: Literal["from", "to"] = Field(default="from", description="Picker the selection is for")
    presets: List[TokenPresetModel] = Field(
        default_factory=list,
        description="When non-empty, replaces the visible-chain view",
    )
    visible_chain_ids: Optional[List[int]] = Field(default=None, description="Override the visible chains")


class TokenListResponse(BaseModel):
    count: int
    tokens: List[Dict[str, Any]]
    stale: bool = Field(default=False, description="Catalog is the persisted copy; the live fetch failed")
    error: Optional[str] = None


async def _catalog(session: SwapSession) -> ChainTokenMap:
    try:
        return await session.tokens.ensure_loaded()
    except SwapDeskError as exc:
        raise http_error(exc)


def _token_response(session: SwapSession, tokens: List[TokenDescriptor]) -> TokenListResponse:
    refresh_error = session.tokens.refresh_error
    return TokenListResponse(
        count=len(tokens),
        tokens=[token.to_dict() for token in tokens],
        stale=refresh_error is not None,
        error=str(refresh_error) if refresh_error else None,
    )


@router.get("")
async def list_tokens(
    chain_id: Optional[int] = Query(default=None, description="Only tokens on this chain"),
    all_chains: bool = Query(default=False, description="Include chains hidden by default"),
    session: SwapSession = Depends(get_session),
) -> TokenListResponse:
    catalog = await _catalog(session)

    if chain_id is not None:
        if chain_id not in catalog:
            raise HTTPException(status_code=404, detail=f"Unknown chain {chain_id}")
        tokens = list(catalog.token_map(chain_id).values())
    elif all_chains:
        tokens = catalog.all_tokens()
    else:
        tokens = catalog.visible_tokens(settings.visible_chain_ids)

    return _token_response(session, tokens)


@router.post("/select")
async def select_tokens(
    req: TokenSelectRequest,
    session: SwapSession = Depends(get_session),
) -> TokenListResponse:
    catalog = await _catalog(session)

    presets = [TokenPreset(chain_id=item.chain_id, address=item.address) for item in req.presets]
    visible = req.visible_chain_ids if req.visible_chain_ids is not None else settings.visible_chain_ids
    picker = catalog.from_tokens if req.side == "from" else catalog.to_tokens
    tokens = picker(presets, visible)

    return _token_response(session, tokens)
