"""Value ledger endpoints."""

from fastapi import APIRouter, Query, status

from credledger.api.dependencies import CallerDep, RegistryDep
from credledger.api.models import (
    APIResponse,
    BalanceResponse,
    DepositCreate,
    TransferResponse,
    transfer_to_response,
)

router = APIRouter(tags=["accounts"])


@router.get("/accounts/{identity}", response_model=APIResponse[BalanceResponse])
def get_balance(identity: str, registry: RegistryDep) -> APIResponse[BalanceResponse]:
    """Get an account balance. Unknown identities hold 0."""
    return APIResponse(
        data=BalanceResponse(identity=identity, balance=registry.balance_of(identity))
    )


@router.post(
    "/accounts/{identity}/deposits",
    response_model=APIResponse[BalanceResponse],
    status_code=status.HTTP_201_CREATED,
)
def deposit(
    identity: str, body: DepositCreate, caller: CallerDep, registry: RegistryDep
) -> APIResponse[BalanceResponse]:
    """Credit value to an account. Owner only."""
    balance = registry.deposit(caller, identity, body.amount)
    return APIResponse(data=BalanceResponse(identity=identity, balance=balance))


@router.get("/transfers", response_model=APIResponse[list[TransferResponse]])
def list_transfers(
    registry: RegistryDep,
    identity: str | None = Query(default=None, description="Filter by sender or recipient"),
    limit: int = Query(default=100, ge=1, le=1000, description="Max results"),
    offset: int = Query(default=0, ge=0, description="Pagination offset"),
) -> APIResponse[list[TransferResponse]]:
    """List ledger transfers with optional filter and pagination."""
    transfers = registry.list_transfers(identity=identity, limit=limit, offset=offset)
    return APIResponse(data=[transfer_to_response(t) for t in transfers])
