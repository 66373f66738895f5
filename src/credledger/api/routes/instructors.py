"""Instructor authorization endpoints."""

from fastapi import APIRouter, status

from credledger.api.dependencies import CallerDep, RegistryDep
from credledger.api.models import APIResponse, InstructorAuthorize, InstructorResponse

router = APIRouter(prefix="/instructors", tags=["instructors"])


@router.post(
    "",
    response_model=APIResponse[InstructorResponse],
    status_code=status.HTTP_201_CREATED,
)
def authorize_instructor(
    body: InstructorAuthorize, caller: CallerDep, registry: RegistryDep
) -> APIResponse[InstructorResponse]:
    """Authorize an instructor (owner only)."""
    registry.authorize_instructor(caller, body.instructor)
    return APIResponse(data=InstructorResponse(identity=body.instructor, authorized=True))


@router.get("/{identity}", response_model=APIResponse[InstructorResponse])
def get_instructor(identity: str, registry: RegistryDep) -> APIResponse[InstructorResponse]:
    """Check whether an identity is an authorized instructor."""
    authorized = registry.is_authorized_instructor(identity)
    return APIResponse(data=InstructorResponse(identity=identity, authorized=authorized))
