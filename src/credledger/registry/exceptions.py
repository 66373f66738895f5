"""Custom exceptions for the Credential Registry."""


class RegistryError(Exception):
    """Base exception for Credential Registry errors."""


class AuthorizationError(RegistryError):
    """Caller does not hold the role required for the operation."""


class NotFoundError(RegistryError):
    """Referenced entity does not exist."""


class CourseNotFoundError(NotFoundError):
    """Course with given ID does not exist."""


class StudentNotFoundError(NotFoundError):
    """Identity is not a registered student."""


class DuplicateError(RegistryError):
    """Entity already exists."""


class StudentExistsError(DuplicateError):
    """Identity is already registered as a student."""


class AlreadyEnrolledError(DuplicateError):
    """Student is already enrolled in the course."""


class CertificateExistsError(DuplicateError):
    """A certificate with the computed ID was already issued."""


class ValidationError(RegistryError):
    """Input failed validation."""


class CourseInactiveError(ValidationError):
    """Course is not accepting enrollments."""


class NotEnrolledError(ValidationError):
    """Student is not enrolled in the course."""


class PaymentError(RegistryError):
    """Base exception for value transfer failures."""


class InsufficientPaymentError(PaymentError):
    """Payment is below the course price."""


class InsufficientFundsError(PaymentError):
    """Account balance does not cover the payment."""


class TransferError(PaymentError):
    """Value transfer could not be completed."""
