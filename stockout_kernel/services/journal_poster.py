"""
JournalPoster -- persists a JournalPlan as a posted ledger transaction.

Responsibility:
    Resolves every account role in the plan, allocates a ledger number,
    writes the GLTransaction header and its items as POSTED.

Architecture position:
    Kernel > Services.  Flushes only.

Invariants enforced:
    - All accounts are resolved before anything is written; a missing
      account is a hard stop (AccountNotFoundError) and no partial entry is
      ever persisted.
    - sum(debit) == sum(credit) == total_amount is re-checked on the rows
      actually written.

Failure modes:
    - AccountNotFoundError: a role has no binding and no name match.
    - UnbalancedEntryError: the written lines do not balance.
    - StoreError: database failure.
"""

from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from stockout_kernel.domain.clock import Clock, SystemClock
from stockout_kernel.domain.journal import JournalPlan
from stockout_kernel.domain.references import format_gl_transaction_number
from stockout_kernel.exceptions import StoreError, UnbalancedEntryError
from stockout_kernel.logging_config import get_logger
from stockout_kernel.models.gl import (
    GLTransaction,
    GLTransactionItem,
    GLTransactionStatus,
    GLTransactionType,
)
from stockout_kernel.services.account_resolver import AccountResolver
from stockout_kernel.services.base import BaseService
from stockout_kernel.services.sequence_service import SequenceService

logger = get_logger("services.journal_poster")


class JournalPoster(BaseService):
    """Writes balanced, posted ledger transactions."""

    def __init__(
        self,
        session: Session,
        account_resolver: AccountResolver,
        clock: Clock | None = None,
        sequence_service: SequenceService | None = None,
    ):
        super().__init__(session)
        self._accounts = account_resolver
        self._clock = clock or SystemClock()
        self._sequences = sequence_service or SequenceService(session)

    def post(
        self,
        plan: JournalPlan,
        *,
        reference_number: str,
        actor_id: UUID,
    ) -> GLTransaction:
        """
        Post a plan.

        Preconditions:
            plan.is_balanced.

        Raises:
            AccountNotFoundError, UnbalancedEntryError, StoreError.
        """
        account_ids = [
            self._accounts.require(role, branch_id)
            for role, branch_id in plan.required_roles()
        ]

        now = self._clock.now()
        try:
            number = format_gl_transaction_number(
                now, self._sequences.next_value(SequenceService.GL_TRANSACTION)
            )
            gl_transaction = GLTransaction(
                transaction_number=number,
                transaction_date=now,
                description=plan.description,
                transaction_type=GLTransactionType.ADJUSTMENT.value,
                reference_number=reference_number,
                total_amount=plan.amount,
                status=GLTransactionStatus.POSTED.value,
                posted_by_id=actor_id,
                posted_at=now,
            )
            for seq, (line, account_id) in enumerate(zip(plan.lines, account_ids), start=1):
                gl_transaction.items.append(
                    GLTransactionItem(
                        line_seq=seq,
                        account_id=account_id,
                        debit_amount=line.debit,
                        credit_amount=line.credit,
                        memo=line.memo,
                    )
                )

            if not gl_transaction.is_balanced or gl_transaction.total_debits != plan.amount:
                raise UnbalancedEntryError(
                    gl_transaction.total_debits, gl_transaction.total_credits
                )

            self.session.add(gl_transaction)
            self.session.flush()
        except SQLAlchemyError as exc:
            raise StoreError("create journal entry", str(exc)) from exc

        logger.info(
            "journal_posted",
            extra={
                "gl_transaction_id": str(gl_transaction.id),
                "transaction_number": number,
                "reference_number": reference_number,
                "total_amount": str(plan.amount),
                "line_count": len(plan.lines),
            },
        )
        return gl_transaction
