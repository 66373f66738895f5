"""Registry statistics endpoint."""

from fastapi import APIRouter

from credledger.api.dependencies import RegistryDep
from credledger.api.models import APIResponse, StatsResponse, stats_to_response

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("", response_model=APIResponse[StatsResponse])
def get_stats(registry: RegistryDep) -> APIResponse[StatsResponse]:
    """Get total courses, total students and the owner."""
    return APIResponse(data=stats_to_response(registry.get_contract_stats()))
