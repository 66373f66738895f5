"""Pydantic models for REST API."""

from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from credledger.registry import MAX_AMOUNT

T = TypeVar("T")


class APIResponse(BaseModel, Generic[T]):
    """Standard API response wrapper."""

    data: T | None = None
    error: str | None = None


# Student models


class StudentRegister(BaseModel):
    """Request model for registering the caller as a student."""

    name: str = Field(..., min_length=1, max_length=255)


class StudentResponse(BaseModel):
    """Response model for a student."""

    model_config = ConfigDict(from_attributes=True)

    identity: str
    name: str
    enrolled_courses: list[int]
    completed_courses: list[int]
    total_credits: int
    is_registered: bool
    registered_at: datetime | None


def student_to_response(student: Any) -> StudentResponse:
    """Convert a StudentRecord to StudentResponse."""
    return StudentResponse.model_validate(student)


# Instructor models


class InstructorAuthorize(BaseModel):
    """Request model for authorizing an instructor."""

    instructor: str = Field(..., min_length=1, max_length=255)


class InstructorResponse(BaseModel):
    """Response model for an instructor's authorization status."""

    identity: str
    authorized: bool


# Course models


class CourseCreate(BaseModel):
    """Request model for creating a course."""

    title: str = Field(..., min_length=1, max_length=500)
    description: str = Field(..., min_length=1)
    price: int = Field(..., ge=0, le=MAX_AMOUNT)
    duration: int = Field(..., gt=0, le=MAX_AMOUNT, description="Duration in days")


class CourseStatusUpdate(BaseModel):
    """Request model for opening or closing a course."""

    active: bool


class CourseResponse(BaseModel):
    """Response model for a course."""

    model_config = ConfigDict(from_attributes=True)

    course_id: int
    title: str
    description: str
    instructor: str
    price: int
    duration: int
    is_active: bool
    enrolled_students: int
    created_at: datetime | None
    exists: bool


def course_to_response(course: Any) -> CourseResponse:
    """Convert a CourseDetails to CourseResponse."""
    return CourseResponse.model_validate(course)


# Enrollment models


class EnrollmentCreate(BaseModel):
    """Request model for enrolling the caller in a course."""

    payment: int = Field(..., ge=0, le=MAX_AMOUNT)


class EnrollmentResponse(BaseModel):
    """Response model for a completed enrollment."""

    model_config = ConfigDict(from_attributes=True)

    course_id: int
    student: str
    instructor: str
    amount_paid: int
    instructor_payout: int
    refund: int


def enrollment_to_response(receipt: Any) -> EnrollmentResponse:
    """Convert an EnrollmentReceipt to EnrollmentResponse."""
    return EnrollmentResponse.model_validate(receipt)


# Certificate models


class CertificateIssue(BaseModel):
    """Request model for issuing a certificate."""

    student: str = Field(..., min_length=1, max_length=255)
    certificate_hash: str = Field(..., min_length=1, max_length=500)


class CertificateIssuedResponse(BaseModel):
    """Response model for an issued certificate."""

    certificate_id: str


class CertificateResponse(BaseModel):
    """Response model for certificate verification."""

    model_config = ConfigDict(from_attributes=True)

    certificate_id: str
    exists: bool
    is_valid: bool
    course_id: int
    student: str
    instructor: str
    issued_at: datetime | None
    content_hash: str


def certificate_to_response(verification: Any) -> CertificateResponse:
    """Convert a CertificateVerification to CertificateResponse."""
    return CertificateResponse.model_validate(verification)


# Registry models


class StatsResponse(BaseModel):
    """Response model for registry statistics."""

    model_config = ConfigDict(from_attributes=True)

    total_courses: int
    total_students: int
    owner: str


def stats_to_response(stats: Any) -> StatsResponse:
    """Convert a ContractStats to StatsResponse."""
    return StatsResponse.model_validate(stats)


class EventResponse(BaseModel):
    """Response model for an audit event."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    event_type: str
    payload: dict[str, Any]
    created_at: datetime


def event_to_response(event: Any) -> EventResponse:
    """Convert an EventRecord to EventResponse."""
    return EventResponse.model_validate(event)


# Ledger models


class DepositCreate(BaseModel):
    """Request model for depositing value into an account."""

    amount: int = Field(..., gt=0, le=MAX_AMOUNT)


class BalanceResponse(BaseModel):
    """Response model for an account balance."""

    identity: str
    balance: int


class TransferResponse(BaseModel):
    """Response model for a ledger transfer."""

    model_config = ConfigDict(from_attributes=True)

    sender: str
    recipient: str
    amount: int
    memo: str
    created_at: datetime


def transfer_to_response(transfer: Any) -> TransferResponse:
    """Convert a TransferRecord to TransferResponse."""
    return TransferResponse.model_validate(transfer)
