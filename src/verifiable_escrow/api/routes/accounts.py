"""Account balance routes.

Routes:
    GET    /api/v1/accounts/{address}/balances   Balances held by an account
    POST   /api/v1/accounts/{address}/deposit    Mint test funds (development only)
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from verifiable_escrow.api.deps import get_app_settings, get_transfer_service
from verifiable_escrow.config import Settings  # noqa: TC001
from verifiable_escrow.schemas.escrow import BalanceResponse, DepositRequest
from verifiable_escrow.services.transfer_service import TransferService  # noqa: TC001

router = APIRouter(prefix="/api/v1/accounts", tags=["Accounts"])


@router.get(
    "/{address}/balances",
    response_model=list[BalanceResponse],
    summary="List account balances",
)
async def get_balances(
    address: str,
    transfers: TransferService = Depends(get_transfer_service),
) -> list[BalanceResponse]:
    return [BalanceResponse.model_validate(b) for b in await transfers.balances(address)]


@router.post(
    "/{address}/deposit",
    response_model=BalanceResponse,
    summary="Credit test funds to an account",
)
async def deposit(
    address: str,
    request: DepositRequest,
    transfers: TransferService = Depends(get_transfer_service),
    settings: Settings = Depends(get_app_settings),
) -> BalanceResponse:
    """Faucet for local development. Disabled outside the development env."""
    if not settings.is_development:
        raise HTTPException(status_code=403, detail="Deposits are only available in development")
    amount = await transfers.deposit(address, request.currency, request.amount)
    return BalanceResponse(currency=request.currency, amount=amount)
