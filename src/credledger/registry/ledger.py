"""Value ledger - balances and transfers for payment-gated enrollment."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from credledger.registry.exceptions import InsufficientFundsError, ValidationError
from credledger.registry.models import MAX_AMOUNT, Account, Transfer

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

# Identity holding value while an enrollment payment is being disbursed
ESCROW = "credledger:escrow"

# Sender recorded for value entering the ledger from outside
EXTERNAL = "credledger:external"


def utcnow() -> datetime:
    """Current UTC time."""
    return datetime.now(UTC)


class BalanceLedger:
    """Balance ledger stored next to the registry tables.

    Every method works on the session it is given, so balance changes commit
    or roll back together with the registry operation that caused them.
    """

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or utcnow

    def balance(self, session: Session, identity: str) -> int:
        """Get the balance of an identity. Unknown identities hold 0."""
        account = session.get(Account, identity)
        return account.balance if account is not None else 0

    def deposit(self, session: Session, identity: str, amount: int) -> Transfer:
        """Credit value entering the ledger from outside.

        Raises:
            ValidationError: If amount is not positive
        """
        if amount <= 0:
            raise ValidationError("Deposit amount must be positive")
        if amount > MAX_AMOUNT:
            raise ValidationError(f"Deposit amount must not exceed {MAX_AMOUNT}")
        self._credit(session, identity, amount)
        return self._record(session, EXTERNAL, identity, amount, "deposit")

    def collect(self, session: Session, payer: str, amount: int, memo: str) -> None:
        """Move value from the payer into escrow.

        Raises:
            InsufficientFundsError: If the payer's balance is below amount
        """
        if amount == 0:
            return
        account = session.get(Account, payer)
        available = account.balance if account is not None else 0
        if account is None or available < amount:
            raise InsufficientFundsError(
                f"Account '{payer}' holds {available}, payment requires {amount}"
            )
        account.balance -= amount
        self._record(session, payer, ESCROW, amount, memo)

    def pay(self, session: Session, recipient: str, amount: int, memo: str) -> None:
        """Release value from escrow to the recipient."""
        if amount == 0:
            return
        self._credit(session, recipient, amount)
        self._record(session, ESCROW, recipient, amount, memo)
        logger.debug("Paid %d to %s (%s)", amount, recipient, memo)

    def _credit(self, session: Session, identity: str, amount: int) -> None:
        account = session.get(Account, identity)
        if account is None:
            account = Account(identity=identity, balance=0)
            session.add(account)
            session.flush()
        if account.balance > MAX_AMOUNT - amount:
            raise ValidationError(f"Balance of '{identity}' would exceed {MAX_AMOUNT}")
        account.balance += amount

    def _record(
        self, session: Session, sender: str, recipient: str, amount: int, memo: str
    ) -> Transfer:
        transfer = Transfer(
            sender=sender,
            recipient=recipient,
            amount=amount,
            memo=memo,
            created_at=self._clock(),
        )
        session.add(transfer)
        return transfer
