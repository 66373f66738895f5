"""SQLAlchemy models for the Credential Registry."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime  # noqa: TC003 - used at runtime for SQLAlchemy
from enum import StrEnum
from typing import Any

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    mapped_column,
    relationship,
)

# Credits granted for each distinct completed course
CREDITS_PER_COURSE = 10

# Null identity used by ledger tooling
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Largest amount, price or duration a 64-bit SQLite INTEGER column holds
MAX_AMOUNT = 2**63 - 1


class EventType(StrEnum):
    """Domain events recorded in the audit trail."""

    STUDENT_REGISTERED = "student_registered"
    INSTRUCTOR_AUTHORIZED = "instructor_authorized"
    COURSE_CREATED = "course_created"
    COURSE_STATUS_CHANGED = "course_status_changed"
    STUDENT_ENROLLED = "student_enrolled"
    CERTIFICATE_ISSUED = "certificate_issued"


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class RegistryMeta(Base):
    """Singleton row holding deployment data and global counters."""

    __tablename__ = "registry_meta"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    owner: Mapped[str] = mapped_column(String(255), nullable=False)
    total_courses: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_students: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    certificate_nonce: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    deployed_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    def __repr__(self) -> str:
        return f"<RegistryMeta(owner={self.owner!r}, total_courses={self.total_courses!r})>"


class Instructor(Base):
    """Authorized instructor. Rows are never deleted."""

    __tablename__ = "instructors"

    identity: Mapped[str] = mapped_column(String(255), primary_key=True)
    authorized_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    def __repr__(self) -> str:
        return f"<Instructor(identity={self.identity!r})>"


class Student(Base):
    """Registered student."""

    __tablename__ = "students"

    identity: Mapped[str] = mapped_column(String(255), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    total_credits: Mapped[int] = mapped_column(Integer, nullable=False)
    registered_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    # Relationships
    enrollments: Mapped[list[Enrollment]] = relationship(
        "Enrollment", back_populates="student", order_by="Enrollment.sequence"
    )
    completions: Mapped[list[Completion]] = relationship(
        "Completion", back_populates="student", order_by="Completion.sequence"
    )

    def __init__(
        self,
        identity: str,
        name: str,
        registered_at: datetime,
        total_credits: int = 0,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.identity = identity
        self.name = name
        self.registered_at = registered_at
        self.total_credits = total_credits

    @property
    def enrolled_course_ids(self) -> list[int]:
        """Enrolled course IDs in enrollment order."""
        return [e.course_id for e in self.enrollments]

    @property
    def completed_course_ids(self) -> list[int]:
        """Completed course IDs in completion order."""
        return [c.course_id for c in self.completions]

    def __repr__(self) -> str:
        return f"<Student(identity={self.identity!r}, name={self.name!r})>"


class Course(Base):
    """Course listing. Only is_active and enrolled_students change after creation."""

    __tablename__ = "courses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    instructor: Mapped[str] = mapped_column(
        String(255), ForeignKey("instructors.identity"), nullable=False
    )
    price: Mapped[int] = mapped_column(Integer, nullable=False)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False)
    enrolled_students: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    def __init__(
        self,
        id: int,
        title: str,
        description: str,
        instructor: str,
        price: int,
        duration: int,
        created_at: datetime,
        is_active: bool = True,
        enrolled_students: int = 0,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.id = id
        self.title = title
        self.description = description
        self.instructor = instructor
        self.price = price
        self.duration = duration
        self.created_at = created_at
        self.is_active = is_active
        self.enrolled_students = enrolled_students

    def __repr__(self) -> str:
        return f"<Course(id={self.id!r}, title={self.title!r}, active={self.is_active!r})>"


class Enrollment(Base):
    """Enrollment flag for a (student, course) pair. Never deleted."""

    __tablename__ = "enrollments"

    student_identity: Mapped[str] = mapped_column(
        String(255), ForeignKey("students.identity"), primary_key=True
    )
    course_id: Mapped[int] = mapped_column(Integer, ForeignKey("courses.id"), primary_key=True)
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    amount_paid: Mapped[int] = mapped_column(Integer, nullable=False)
    enrolled_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    student: Mapped[Student] = relationship("Student", back_populates="enrollments")

    def __repr__(self) -> str:
        return f"<Enrollment(student={self.student_identity!r}, course_id={self.course_id!r})>"


class Completion(Base):
    """Completed course entry; the primary key keeps the list free of duplicates."""

    __tablename__ = "completions"

    student_identity: Mapped[str] = mapped_column(
        String(255), ForeignKey("students.identity"), primary_key=True
    )
    course_id: Mapped[int] = mapped_column(Integer, ForeignKey("courses.id"), primary_key=True)
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    completed_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    student: Mapped[Student] = relationship("Student", back_populates="completions")


class Certificate(Base):
    """Issued certificate. Immutable once created."""

    __tablename__ = "certificates"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    course_id: Mapped[int] = mapped_column(Integer, ForeignKey("courses.id"), nullable=False)
    student: Mapped[str] = mapped_column(
        String(255), ForeignKey("students.identity"), nullable=False
    )
    instructor: Mapped[str] = mapped_column(String(255), nullable=False)
    issued_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    content_hash: Mapped[str] = mapped_column(String(500), nullable=False)
    verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<Certificate(id={self.id!r}, course_id={self.course_id!r})>"


class Account(Base):
    """Balance held by an identity in the value ledger."""

    __tablename__ = "accounts"

    identity: Mapped[str] = mapped_column(String(255), primary_key=True)
    balance: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class Transfer(Base):
    """Append-only record of a value movement."""

    __tablename__ = "transfers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sender: Mapped[str] = mapped_column(String(255), nullable=False)
    recipient: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    memo: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<Transfer(sender={self.sender!r}, recipient={self.recipient!r}, "
            f"amount={self.amount!r})>"
        )


class AuditEvent(Base):
    """Domain event as recorded in the audit trail."""

    __tablename__ = "audit_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_type: Mapped[str] = mapped_column(String(50), nullable=False)
    payload: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    @property
    def domain_event_type(self) -> EventType:
        """Get event_type as EventType enum."""
        return EventType(self.event_type)


# Read views returned by the registry. Unknown keys produce default records with
# exists=False rather than raising.


@dataclass
class CourseDetails:
    """Public view of a course."""

    course_id: int
    title: str = ""
    description: str = ""
    instructor: str = ""
    price: int = 0
    duration: int = 0
    is_active: bool = False
    enrolled_students: int = 0
    created_at: datetime | None = None
    exists: bool = False


@dataclass
class StudentRecord:
    """Public view of a student."""

    identity: str
    name: str = ""
    enrolled_courses: list[int] = field(default_factory=list)
    completed_courses: list[int] = field(default_factory=list)
    total_credits: int = 0
    is_registered: bool = False
    registered_at: datetime | None = None


@dataclass
class CertificateVerification:
    """Result of verifying a certificate ID.

    exists and is_valid are separate signals: an unknown ID is reported as
    exists=False, is_valid=False.
    """

    certificate_id: str
    exists: bool = False
    is_valid: bool = False
    course_id: int = 0
    student: str = ""
    instructor: str = ""
    issued_at: datetime | None = None
    content_hash: str = ""


@dataclass
class ContractStats:
    """Registry-wide counters."""

    total_courses: int
    total_students: int
    owner: str


@dataclass
class TransferRecord:
    """Public view of a ledger transfer."""

    sender: str
    recipient: str
    amount: int
    memo: str
    created_at: datetime


@dataclass
class EventRecord:
    """Public view of an audit event."""

    id: int
    event_type: str
    payload: dict[str, Any]
    created_at: datetime


@dataclass
class EnrollmentReceipt:
    """Value movements of a successful enrollment."""

    course_id: int
    student: str
    instructor: str
    amount_paid: int
    instructor_payout: int
    refund: int
