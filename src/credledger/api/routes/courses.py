"""Course, enrollment and certificate issuance endpoints."""

from fastapi import APIRouter, Query, status

from credledger.api.dependencies import CallerDep, RegistryDep
from credledger.api.models import (
    APIResponse,
    CertificateIssue,
    CertificateIssuedResponse,
    CourseCreate,
    CourseResponse,
    CourseStatusUpdate,
    EnrollmentCreate,
    EnrollmentResponse,
    course_to_response,
    enrollment_to_response,
)

router = APIRouter(prefix="/courses", tags=["courses"])


@router.get("", response_model=APIResponse[list[CourseResponse]])
def list_courses(
    registry: RegistryDep,
    active_only: bool = Query(default=False, description="Only list active courses"),
) -> APIResponse[list[CourseResponse]]:
    """List courses ordered by ID."""
    courses = registry.list_courses(active_only=active_only)
    return APIResponse(data=[course_to_response(c) for c in courses])


@router.post(
    "",
    response_model=APIResponse[CourseResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_course(
    course: CourseCreate, caller: CallerDep, registry: RegistryDep
) -> APIResponse[CourseResponse]:
    """Create a course owned by the calling instructor."""
    course_id = registry.create_course(
        caller,
        title=course.title,
        description=course.description,
        price=course.price,
        duration=course.duration,
    )
    return APIResponse(data=course_to_response(registry.get_course_details(course_id)))


@router.get("/{course_id}", response_model=APIResponse[CourseResponse])
def get_course(course_id: int, registry: RegistryDep) -> APIResponse[CourseResponse]:
    """Get a course. Unknown IDs return a default record with exists=false."""
    return APIResponse(data=course_to_response(registry.get_course_details(course_id)))


@router.patch("/{course_id}/status", response_model=APIResponse[CourseResponse])
def set_course_status(
    course_id: int, body: CourseStatusUpdate, caller: CallerDep, registry: RegistryDep
) -> APIResponse[CourseResponse]:
    """Open or close a course (instructor or owner)."""
    registry.set_course_status(caller, course_id, body.active)
    return APIResponse(data=course_to_response(registry.get_course_details(course_id)))


@router.post(
    "/{course_id}/enrollments",
    response_model=APIResponse[EnrollmentResponse],
    status_code=status.HTTP_201_CREATED,
)
def enroll_in_course(
    course_id: int, body: EnrollmentCreate, caller: CallerDep, registry: RegistryDep
) -> APIResponse[EnrollmentResponse]:
    """Enroll the caller in a course, paying from their balance."""
    receipt = registry.enroll_in_course(caller, course_id, body.payment)
    return APIResponse(data=enrollment_to_response(receipt))


@router.post(
    "/{course_id}/certificates",
    response_model=APIResponse[CertificateIssuedResponse],
    status_code=status.HTTP_201_CREATED,
)
def issue_certificate(
    course_id: int, body: CertificateIssue, caller: CallerDep, registry: RegistryDep
) -> APIResponse[CertificateIssuedResponse]:
    """Issue a certificate to an enrolled student (course instructor only)."""
    certificate_id = registry.issue_certificate(
        caller, course_id, body.student, body.certificate_hash
    )
    return APIResponse(data=CertificateIssuedResponse(certificate_id=certificate_id))
