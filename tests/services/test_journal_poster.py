"""Tests for JournalPoster: persisted ledger transactions from a plan."""

from decimal import Decimal

import pytest

from stockout_kernel.domain.clock import DeterministicClock
from stockout_kernel.domain.journal import build_journal_plan
from stockout_kernel.domain.reasons import FinancialImpact, StockOutReason
from stockout_kernel.exceptions import AccountNotFoundError
from stockout_kernel.models.gl import GLTransaction, GLTransactionStatus, GLTransactionType
from stockout_kernel.services.account_resolver import AccountResolver
from stockout_kernel.services.journal_poster import JournalPoster
from stockout_kernel.services.sequence_service import SequenceService


@pytest.fixture
def poster(session, deterministic_clock):
    return JournalPoster(session, AccountResolver(session), deterministic_clock)


def _loss_plan(branch_id, amount="125.50"):
    return build_journal_plan(
        impact=FinancialImpact.LOSS,
        reason=StockOutReason.EXPIRED,
        amount=Decimal(amount),
        branch_id=branch_id,
        product_name="Widget",
        quantity=Decimal("5"),
    )


class TestJournalPoster:

    def test_posts_balanced_transaction(self, session, poster, role_bindings, branches, users, standard_accounts):
        gl = poster.post(
            _loss_plan(branches["main"].id),
            reference_number="SO-20240101-120000-000001-001",
            actor_id=users["clerk"].id,
        )

        assert gl.status == GLTransactionStatus.POSTED.value
        assert gl.transaction_type == GLTransactionType.ADJUSTMENT.value
        assert gl.transaction_number == "GL-20240101-000001"
        assert gl.total_amount == Decimal("125.50")
        assert gl.posted_by_id == users["clerk"].id
        assert [item.line_seq for item in gl.items] == [1, 2]
        assert gl.items[0].account_id == standard_accounts["5100"].id
        assert gl.items[1].account_id == standard_accounts["1210"].id
        assert gl.is_balanced

    def test_transaction_numbers_increase(self, session, poster, role_bindings, branches, users):
        first = poster.post(_loss_plan(branches["main"].id), reference_number="R1", actor_id=users["clerk"].id)
        second = poster.post(_loss_plan(branches["main"].id), reference_number="R2", actor_id=users["clerk"].id)

        assert first.transaction_number < second.transaction_number
        assert SequenceService(session).current_value(SequenceService.GL_TRANSACTION) == 2

    def test_missing_account_writes_nothing(self, session, poster, branches, users):
        with pytest.raises(AccountNotFoundError):
            poster.post(_loss_plan(branches["main"].id), reference_number="R1", actor_id=users["clerk"].id)

        assert session.query(GLTransaction).count() == 0

    def test_logs_posting(self, session, poster, role_bindings, branches, users, captured_logs):
        poster.post(_loss_plan(branches["main"].id), reference_number="R9", actor_id=users["clerk"].id)

        event = next(r for r in captured_logs() if r["message"] == "journal_posted")
        assert event["line_count"] == 2
        assert event["total_amount"] == "125.50"
