"""CredentialRegistry - Main API for credential registry operations."""

from __future__ import annotations

import hashlib
import json
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Protocol

from sqlalchemy import func, or_, select

from credledger.logging import short_id
from credledger.registry.database import Database
from credledger.registry.exceptions import (
    AlreadyEnrolledError,
    AuthorizationError,
    CertificateExistsError,
    CourseInactiveError,
    CourseNotFoundError,
    InsufficientPaymentError,
    NotEnrolledError,
    RegistryError,
    StudentExistsError,
    StudentNotFoundError,
    ValidationError,
)
from credledger.registry.ledger import BalanceLedger, utcnow
from credledger.registry.models import (
    CREDITS_PER_COURSE,
    MAX_AMOUNT,
    ZERO_ADDRESS,
    AuditEvent,
    Certificate,
    CertificateVerification,
    Completion,
    ContractStats,
    Course,
    CourseDetails,
    Enrollment,
    EnrollmentReceipt,
    EventRecord,
    EventType,
    Instructor,
    RegistryMeta,
    Student,
    StudentRecord,
    Transfer,
    TransferRecord,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

META_ID = 1


class EventPublisher(Protocol):
    """Receives domain events after the operation that raised them commits."""

    def publish(self, event_type: str, payload: dict[str, Any]) -> None:
        """Publish a committed domain event."""
        ...


@dataclass
class _Transaction:
    session: Session
    events: list[tuple[EventType, dict[str, Any]]] = field(default_factory=list)


def is_null_identity(identity: str | None) -> bool:
    """Check whether an identity is empty or the zero address."""
    return identity is None or not identity.strip() or identity.lower() == ZERO_ADDRESS


def _unix_seconds(moment: datetime) -> int:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return int(moment.timestamp())


def certificate_id_for(student: str, course_id: int, issued_at: datetime, nonce: int) -> str:
    """Derive a certificate ID.

    SHA-256 over the student, course, issuance second and the registry-wide
    issuance nonce. The nonce separates certificates issued for the same
    pair within the same second.
    """
    material = f"{student}:{course_id}:{_unix_seconds(issued_at)}:{nonce}"
    return hashlib.sha256(material.encode("utf-8")).hexdigest()


class CredentialRegistry:
    """Main API for the Credential Registry.

    Records students, courses, payment-gated enrollments and certificates.
    Every operation runs under one re-entrant lock and, for mutations, one
    database transaction: either all of its effects (including value
    transfers and audit events) commit, or none do.
    """

    def __init__(
        self,
        db_path: str = "credledger.db",
        owner: str | None = None,
        clock: Callable[[], datetime] | None = None,
        ledger: BalanceLedger | None = None,
        event_publisher: EventPublisher | None = None,
    ) -> None:
        """Open a registry, deploying it on first use.

        Args:
            db_path: Path to SQLite database file
            owner: Owner identity. Required for a new database; for an existing
                one it must match the stored owner if given.
            clock: Timestamp source (defaults to UTC wall clock)
            ledger: Value-transfer mechanism (defaults to BalanceLedger)
            event_publisher: Receiver of committed domain events

        Raises:
            ValidationError: If a new registry is opened without an owner
            AuthorizationError: If owner differs from the deployed owner
        """
        self._clock = clock or utcnow
        self._ledger = ledger or BalanceLedger(self._clock)
        self.event_publisher = event_publisher
        self._lock = threading.RLock()
        self._db = Database(db_path)
        self._db.create_tables()
        try:
            self._deploy(owner)
        except RegistryError:
            self._db.close()
            raise

    def close(self) -> None:
        """Close the database connection."""
        self._db.close()

    def _deploy(self, owner: str | None) -> None:
        with self._transaction("deploy") as tx:
            meta = tx.session.get(RegistryMeta, META_ID)
            if meta is None:
                if is_null_identity(owner):
                    raise ValidationError("Owner identity is required to deploy a registry")
                tx.session.add(
                    RegistryMeta(
                        id=META_ID,
                        owner=owner,
                        total_courses=0,
                        total_students=0,
                        certificate_nonce=0,
                        deployed_at=self._clock(),
                    )
                )
                logger.info("Registry deployed at %s (owner=%s)", self._db.db_path, owner)
            elif owner is not None and owner != meta.owner:
                raise AuthorizationError(
                    f"Registry at '{self._db.db_path}' is owned by '{meta.owner}', not '{owner}'"
                )

    # --- Transaction helpers ---

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[_Transaction]:
        with self._lock:
            session = self._db.get_session()
            tx = _Transaction(session)
            try:
                yield tx
                session.commit()
            except RegistryError as e:
                session.rollback()
                logger.warning("%s rejected: %s", operation, e)
                raise
            except Exception:
                session.rollback()
                logger.exception("%s failed", operation)
                raise
            finally:
                session.close()

            for event_type, payload in tx.events:
                self._publish(event_type, payload)

    @contextmanager
    def _reading(self) -> Iterator[Session]:
        with self._lock:
            session = self._db.get_session()
            try:
                yield session
            finally:
                session.close()

    def _emit(self, tx: _Transaction, event_type: EventType, **payload: Any) -> None:
        tx.session.add(
            AuditEvent(
                event_type=event_type.value,
                payload=json.dumps(payload, sort_keys=True),
                created_at=self._clock(),
            )
        )
        tx.events.append((event_type, payload))

    def _publish(self, event_type: EventType, payload: dict[str, Any]) -> None:
        if self.event_publisher is None:
            return
        try:
            self.event_publisher.publish(event_type.value, payload)
        except Exception:
            # The operation already committed; a broken subscriber must not undo it
            logger.exception("Failed to publish %s event", event_type.value)

    def _meta(self, session: Session) -> RegistryMeta:
        meta = session.get(RegistryMeta, META_ID)
        if meta is None:
            raise RegistryError("Registry is not deployed")
        return meta

    def _require_owner(self, session: Session, caller: str) -> None:
        if caller != self._meta(session).owner:
            raise AuthorizationError(f"'{caller}' is not the registry owner")

    def _require_instructor(self, session: Session, caller: str) -> None:
        if is_null_identity(caller) or session.get(Instructor, caller) is None:
            raise AuthorizationError(f"'{caller}' is not an authorized instructor")

    def _get_course(self, session: Session, course_id: int) -> Course:
        meta = self._meta(session)
        course = None
        if 1 <= course_id <= meta.total_courses:
            course = session.get(Course, course_id)
        if course is None:
            raise CourseNotFoundError(f"Course with id '{course_id}' not found")
        return course

    @staticmethod
    def _next_sequence(
        session: Session, model: type[Enrollment] | type[Completion], student: str
    ) -> int:
        stmt = select(func.count()).select_from(model).where(model.student_identity == student)
        return int(session.execute(stmt).scalar_one())

    # --- Student Operations ---

    def register_student(self, caller: str, name: str) -> StudentRecord:
        """Register the caller as a student.

        Args:
            caller: Identity registering itself
            name: Display name

        Returns:
            The new student record

        Raises:
            ValidationError: If the identity is null or the name is empty
            StudentExistsError: If the caller is already registered
        """
        with self._transaction("register_student") as tx:
            session = tx.session
            if is_null_identity(caller):
                raise ValidationError("Caller identity is required")
            if session.get(Student, caller) is not None:
                raise StudentExistsError(f"Student '{caller}' is already registered")
            if not name or not name.strip():
                raise ValidationError("Student name must not be empty")

            now = self._clock()
            session.add(Student(identity=caller, name=name, registered_at=now))
            self._meta(session).total_students += 1
            self._emit(tx, EventType.STUDENT_REGISTERED, student=caller, name=name)

        logger.info("Student registered: %s", caller)
        return StudentRecord(
            identity=caller,
            name=name,
            is_registered=True,
            registered_at=now,
        )

    def get_student(self, identity: str) -> StudentRecord:
        """Get a student's record. Unknown identities give is_registered=False."""
        with self._reading() as session:
            student = session.get(Student, identity)
            if student is None:
                return StudentRecord(identity=identity)
            return StudentRecord(
                identity=student.identity,
                name=student.name,
                enrolled_courses=student.enrolled_course_ids,
                completed_courses=student.completed_course_ids,
                total_credits=student.total_credits,
                is_registered=True,
                registered_at=student.registered_at,
            )

    def get_student_enrolled_courses(self, identity: str) -> list[int]:
        """Course IDs the student enrolled in, in enrollment order."""
        with self._reading() as session:
            stmt = (
                select(Enrollment.course_id)
                .where(Enrollment.student_identity == identity)
                .order_by(Enrollment.sequence)
            )
            return list(session.execute(stmt).scalars().all())

    def get_student_completed_courses(self, identity: str) -> list[int]:
        """Course IDs the student completed, in completion order."""
        with self._reading() as session:
            stmt = (
                select(Completion.course_id)
                .where(Completion.student_identity == identity)
                .order_by(Completion.sequence)
            )
            return list(session.execute(stmt).scalars().all())

    # --- Instructor Operations ---

    def authorize_instructor(self, caller: str, instructor: str) -> None:
        """Grant course-creation and certificate-issuance rights.

        Re-authorizing an instructor only records the event again.

        Raises:
            AuthorizationError: If the caller is not the owner
            ValidationError: If the instructor identity is null
        """
        with self._transaction("authorize_instructor") as tx:
            session = tx.session
            self._require_owner(session, caller)
            if is_null_identity(instructor):
                raise ValidationError("Instructor identity must not be null")

            if session.get(Instructor, instructor) is None:
                session.add(Instructor(identity=instructor, authorized_at=self._clock()))
            self._emit(tx, EventType.INSTRUCTOR_AUTHORIZED, instructor=instructor)

        logger.info("Instructor authorized: %s", instructor)

    def is_authorized_instructor(self, identity: str) -> bool:
        with self._reading() as session:
            return session.get(Instructor, identity) is not None

    # --- Course Operations ---

    def create_course(
        self,
        caller: str,
        title: str,
        description: str,
        price: int,
        duration: int,
    ) -> int:
        """Create a course owned by the calling instructor.

        Args:
            caller: Authorized instructor identity
            title: Course title
            description: Course description
            price: Price in the smallest currency unit
            duration: Duration in days

        Returns:
            The new course ID

        Raises:
            AuthorizationError: If the caller is not an authorized instructor
            ValidationError: If a field is empty or out of range
        """
        with self._transaction("create_course") as tx:
            session = tx.session
            self._require_instructor(session, caller)
            if not title or not title.strip():
                raise ValidationError("Course title must not be empty")
            if not description or not description.strip():
                raise ValidationError("Course description must not be empty")
            if not 0 <= price <= MAX_AMOUNT:
                raise ValidationError(f"Course price must be between 0 and {MAX_AMOUNT}")
            if not 0 < duration <= MAX_AMOUNT:
                raise ValidationError(f"Course duration must be between 1 and {MAX_AMOUNT}")

            meta = self._meta(session)
            meta.total_courses += 1
            course_id = meta.total_courses
            session.add(
                Course(
                    id=course_id,
                    title=title,
                    description=description,
                    instructor=caller,
                    price=price,
                    duration=duration,
                    created_at=self._clock(),
                )
            )
            self._emit(
                tx,
                EventType.COURSE_CREATED,
                course_id=course_id,
                title=title,
                instructor=caller,
                price=price,
            )

        logger.info("Course %d created by %s: %s", course_id, caller, title)
        return course_id

    def get_course_details(self, course_id: int) -> CourseDetails:
        """Get a course. Unknown IDs give a default record with exists=False."""
        with self._reading() as session:
            course = None
            if 1 <= course_id <= self._meta(session).total_courses:
                course = session.get(Course, course_id)
            if course is None:
                return CourseDetails(course_id=course_id)
            return self._course_details(course)

    def list_courses(self, active_only: bool = False) -> list[CourseDetails]:
        """List courses ordered by ID."""
        with self._reading() as session:
            stmt = select(Course)
            if active_only:
                stmt = stmt.where(Course.is_active.is_(True))
            stmt = stmt.order_by(Course.id)
            return [self._course_details(c) for c in session.execute(stmt).scalars().all()]

    @staticmethod
    def _course_details(course: Course) -> CourseDetails:
        return CourseDetails(
            course_id=course.id,
            title=course.title,
            description=course.description,
            instructor=course.instructor,
            price=course.price,
            duration=course.duration,
            is_active=course.is_active,
            enrolled_students=course.enrolled_students,
            created_at=course.created_at,
            exists=True,
        )

    def set_course_status(self, caller: str, course_id: int, active: bool) -> None:
        """Open or close a course for enrollment.

        Raises:
            CourseNotFoundError: If the course doesn't exist
            AuthorizationError: If the caller is neither the instructor nor the owner
        """
        with self._transaction("set_course_status") as tx:
            session = tx.session
            course = self._get_course(session, course_id)
            if caller != course.instructor and caller != self._meta(session).owner:
                raise AuthorizationError(
                    f"'{caller}' may not change the status of course {course_id}"
                )
            course.is_active = active
            self._emit(
                tx,
                EventType.COURSE_STATUS_CHANGED,
                course_id=course_id,
                active=active,
                changed_by=caller,
            )

        logger.info("Course %d %s by %s", course_id, "opened" if active else "closed", caller)

    # --- Enrollment ---

    def enroll_in_course(self, caller: str, course_id: int, payment: int) -> EnrollmentReceipt:
        """Enroll the calling student, paying the instructor and refunding the excess.

        The payment is taken from the caller's balance, the enrollment is
        written, then price goes to the instructor and the remainder back to
        the caller. All of it happens in one transaction.

        Args:
            caller: Registered student identity
            course_id: Course to enroll in
            payment: Value attached to the enrollment

        Returns:
            Receipt with the value movements

        Raises:
            AuthorizationError: If the caller is not a registered student
            CourseNotFoundError: If the course doesn't exist
            CourseInactiveError: If the course is not active
            AlreadyEnrolledError: If the caller is already enrolled
            ValidationError: If payment is negative or out of range
            InsufficientPaymentError: If payment is below the course price
            InsufficientFundsError: If the caller's balance is below payment
            TransferError: If a transfer fails
        """
        with self._transaction("enroll_in_course") as tx:
            session = tx.session
            if session.get(Student, caller) is None:
                raise AuthorizationError(f"'{caller}' is not a registered student")
            course = self._get_course(session, course_id)
            if not 0 <= payment <= MAX_AMOUNT:
                raise ValidationError(f"Payment must be between 0 and {MAX_AMOUNT}")
            if not course.is_active:
                raise CourseInactiveError(f"Course {course_id} is not active")
            if session.get(Enrollment, (caller, course_id)) is not None:
                raise AlreadyEnrolledError(f"'{caller}' is already enrolled in course {course_id}")
            if payment < course.price:
                raise InsufficientPaymentError(
                    f"Course {course_id} costs {course.price}, received {payment}"
                )

            self._ledger.collect(session, caller, payment, memo=f"enrollment:{course_id}")

            session.add(
                Enrollment(
                    student_identity=caller,
                    course_id=course_id,
                    sequence=self._next_sequence(session, Enrollment, caller),
                    amount_paid=course.price,
                    enrolled_at=self._clock(),
                )
            )
            course.enrolled_students += 1
            # Enrollment state is written before any value leaves escrow
            session.flush()

            refund = payment - course.price
            self._ledger.pay(session, course.instructor, course.price, memo=f"course:{course_id}")
            self._ledger.pay(session, caller, refund, memo=f"refund:{course_id}")

            receipt = EnrollmentReceipt(
                course_id=course_id,
                student=caller,
                instructor=course.instructor,
                amount_paid=payment,
                instructor_payout=course.price,
                refund=refund,
            )
            self._emit(
                tx,
                EventType.STUDENT_ENROLLED,
                student=caller,
                course_id=course_id,
                amount=course.price,
            )

        logger.info("Student %s enrolled in course %d (paid %d)", caller, course_id, payment)
        return receipt

    # --- Certificates ---

    def issue_certificate(
        self,
        caller: str,
        course_id: int,
        student: str,
        certificate_hash: str,
    ) -> str:
        """Issue a certificate to an enrolled student.

        The first certificate for a (student, course) pair marks the course
        completed and adds CREDITS_PER_COURSE credits; later ones add nothing.

        Args:
            caller: Instructor of record for the course
            course_id: Completed course
            student: Student identity
            certificate_hash: Content hash of the certificate document

        Returns:
            The certificate ID

        Raises:
            AuthorizationError: If the caller is not the course's authorized instructor
            CourseNotFoundError: If the course doesn't exist
            StudentNotFoundError: If the student is not registered
            NotEnrolledError: If the student is not enrolled in the course
            ValidationError: If the content hash is empty
            CertificateExistsError: If the computed ID was already issued
        """
        with self._transaction("issue_certificate") as tx:
            session = tx.session
            self._require_instructor(session, caller)
            course = self._get_course(session, course_id)
            if course.instructor != caller:
                raise AuthorizationError(f"'{caller}' is not the instructor of course {course_id}")
            record = session.get(Student, student)
            if record is None:
                raise StudentNotFoundError(f"Student '{student}' is not registered")
            if session.get(Enrollment, (student, course_id)) is None:
                raise NotEnrolledError(f"'{student}' is not enrolled in course {course_id}")
            if not certificate_hash or not certificate_hash.strip():
                raise ValidationError("Certificate hash must not be empty")

            meta = self._meta(session)
            meta.certificate_nonce += 1
            issued_at = self._clock()
            certificate_id = certificate_id_for(
                student, course_id, issued_at, meta.certificate_nonce
            )
            if session.get(Certificate, certificate_id) is not None:
                raise CertificateExistsError(f"Certificate '{certificate_id}' already exists")

            session.add(
                Certificate(
                    id=certificate_id,
                    course_id=course_id,
                    student=student,
                    instructor=caller,
                    issued_at=issued_at,
                    content_hash=certificate_hash,
                    verified=True,
                )
            )
            if session.get(Completion, (student, course_id)) is None:
                session.add(
                    Completion(
                        student_identity=student,
                        course_id=course_id,
                        sequence=self._next_sequence(session, Completion, student),
                        completed_at=issued_at,
                    )
                )
                record.total_credits += CREDITS_PER_COURSE
            self._emit(
                tx,
                EventType.CERTIFICATE_ISSUED,
                certificate_id=certificate_id,
                course_id=course_id,
                student=student,
                instructor=caller,
            )

        logger.info(
            "Certificate %s issued to %s for course %d",
            short_id(certificate_id),
            student,
            course_id,
        )
        return certificate_id

    def verify_certificate(self, certificate_id: str) -> CertificateVerification:
        """Look up a certificate.

        Returns:
            The stored fields with exists/is_valid; an unknown ID gives
            exists=False, is_valid=False and empty fields.
        """
        with self._reading() as session:
            certificate = session.get(Certificate, certificate_id)
            if certificate is None:
                return CertificateVerification(certificate_id=certificate_id)
            return CertificateVerification(
                certificate_id=certificate.id,
                exists=True,
                is_valid=certificate.verified,
                course_id=certificate.course_id,
                student=certificate.student,
                instructor=certificate.instructor,
                issued_at=certificate.issued_at,
                content_hash=certificate.content_hash,
            )

    # --- Registry ---

    def get_contract_stats(self) -> ContractStats:
        with self._reading() as session:
            meta = self._meta(session)
            return ContractStats(
                total_courses=meta.total_courses,
                total_students=meta.total_students,
                owner=meta.owner,
            )

    def get_owner(self) -> str:
        return self.get_contract_stats().owner

    def list_events(
        self,
        event_type: EventType | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[EventRecord]:
        """Query the audit trail.

        Args:
            event_type: Filter by event type (None = all)
            limit: Max results to return
            offset: Offset for pagination

        Returns:
            Events in the order they were recorded
        """
        with self._reading() as session:
            stmt = select(AuditEvent)
            if event_type is not None:
                stmt = stmt.where(AuditEvent.event_type == event_type.value)
            stmt = stmt.order_by(AuditEvent.id).limit(limit).offset(offset)
            return [
                EventRecord(
                    id=e.id,
                    event_type=e.event_type,
                    payload=json.loads(e.payload),
                    created_at=e.created_at,
                )
                for e in session.execute(stmt).scalars().all()
            ]

    # --- Value Ledger ---

    def deposit(self, caller: str, identity: str, amount: int) -> int:
        """Credit value to an account from outside the registry.

        Only the owner may mint value into the ledger.

        Returns:
            The new balance

        Raises:
            AuthorizationError: If the caller is not the owner
            ValidationError: If the identity is null, amount is not positive,
                or amount or the resulting balance exceeds MAX_AMOUNT
        """
        with self._transaction("deposit") as tx:
            self._require_owner(tx.session, caller)
            if is_null_identity(identity):
                raise ValidationError("Account identity must not be null")
            self._ledger.deposit(tx.session, identity, amount)
            tx.session.flush()
            balance = self._ledger.balance(tx.session, identity)

        logger.info("Deposited %d to %s", amount, identity)
        return balance

    def balance_of(self, identity: str) -> int:
        with self._reading() as session:
            return self._ledger.balance(session, identity)

    def list_transfers(
        self,
        identity: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[TransferRecord]:
        """List transfers in the order they happened, optionally for one identity."""
        with self._reading() as session:
            stmt = select(Transfer)
            if identity is not None:
                stmt = stmt.where(or_(Transfer.sender == identity, Transfer.recipient == identity))
            stmt = stmt.order_by(Transfer.id).limit(limit).offset(offset)
            return [
                TransferRecord(
                    sender=t.sender,
                    recipient=t.recipient,
                    amount=t.amount,
                    memo=t.memo,
                    created_at=t.created_at,
                )
                for t in session.execute(stmt).scalars().all()
            ]
