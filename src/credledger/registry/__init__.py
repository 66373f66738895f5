"""Credential Registry - Students, courses, enrollments and certificates."""

from credledger.registry.exceptions import (
    AlreadyEnrolledError,
    AuthorizationError,
    CertificateExistsError,
    CourseInactiveError,
    CourseNotFoundError,
    DuplicateError,
    InsufficientFundsError,
    InsufficientPaymentError,
    NotEnrolledError,
    NotFoundError,
    PaymentError,
    RegistryError,
    StudentExistsError,
    StudentNotFoundError,
    TransferError,
    ValidationError,
)
from credledger.registry.ledger import BalanceLedger
from credledger.registry.models import (
    CREDITS_PER_COURSE,
    MAX_AMOUNT,
    ZERO_ADDRESS,
    CertificateVerification,
    ContractStats,
    CourseDetails,
    EnrollmentReceipt,
    EventRecord,
    EventType,
    StudentRecord,
    TransferRecord,
)
from credledger.registry.registry import (
    CredentialRegistry,
    EventPublisher,
    certificate_id_for,
    is_null_identity,
)

__all__ = [
    "CREDITS_PER_COURSE",
    "MAX_AMOUNT",
    "ZERO_ADDRESS",
    "AlreadyEnrolledError",
    "AuthorizationError",
    "BalanceLedger",
    "CertificateExistsError",
    "CertificateVerification",
    "ContractStats",
    "CourseDetails",
    "CourseInactiveError",
    "CourseNotFoundError",
    "CredentialRegistry",
    "DuplicateError",
    "EnrollmentReceipt",
    "EventPublisher",
    "EventRecord",
    "EventType",
    "InsufficientFundsError",
    "InsufficientPaymentError",
    "NotEnrolledError",
    "NotFoundError",
    "PaymentError",
    "RegistryError",
    "StudentExistsError",
    "StudentNotFoundError",
    "StudentRecord",
    "TransferError",
    "TransferRecord",
    "ValidationError",
    "certificate_id_for",
    "is_null_identity",
]
