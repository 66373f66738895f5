"""Student endpoints."""

from fastapi import APIRouter, status

from credledger.api.dependencies import CallerDep, RegistryDep
from credledger.api.models import (
    APIResponse,
    StudentRegister,
    StudentResponse,
    student_to_response,
)

router = APIRouter(prefix="/students", tags=["students"])


@router.post(
    "",
    response_model=APIResponse[StudentResponse],
    status_code=status.HTTP_201_CREATED,
)
def register_student(
    student: StudentRegister, caller: CallerDep, registry: RegistryDep
) -> APIResponse[StudentResponse]:
    """Register the caller as a student."""
    created = registry.register_student(caller, student.name)
    return APIResponse(data=student_to_response(created))


@router.get("/{identity}", response_model=APIResponse[StudentResponse])
def get_student(identity: str, registry: RegistryDep) -> APIResponse[StudentResponse]:
    """Get a student. Unknown identities return is_registered=false."""
    return APIResponse(data=student_to_response(registry.get_student(identity)))


@router.get("/{identity}/enrolled-courses", response_model=APIResponse[list[int]])
def get_enrolled_courses(identity: str, registry: RegistryDep) -> APIResponse[list[int]]:
    """List the course IDs a student enrolled in."""
    return APIResponse(data=registry.get_student_enrolled_courses(identity))


@router.get("/{identity}/completed-courses", response_model=APIResponse[list[int]])
def get_completed_courses(identity: str, registry: RegistryDep) -> APIResponse[list[int]]:
    """List the course IDs a student completed."""
    return APIResponse(data=registry.get_student_completed_courses(identity))
