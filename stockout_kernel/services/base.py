"""
BaseService -- abstract base for all kernel services.

Responsibility:
    Common constructor and session-handling contract.  Services receive a
    SQLAlchemy ``Session`` and persist with ``session.flush()``, never
    ``session.commit()``.

Architecture position:
    Kernel > Services -- imperative shell.

Invariants enforced:
    - Only StockOutService owns transaction boundaries (it commits or rolls
      back each unit of work).  Every other service flushes within the
      caller's transaction, so the same services work in both staged and
      atomic posting modes.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseService(ABC):
    """
    Abstract base class for kernel services.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
        - Does NOT provide reporting queries; those belong in
          ``stockout_kernel/selectors/``.
    """

    def __init__(self, session: Session):
        self.session = session
