"""
Pure domain layer.

Reason classification, reference numbers, journal planning, settings and
request/result DTOs.  Nothing here touches the ORM or the database; time
comes from an injected Clock.
"""

from stockout_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from stockout_kernel.domain.dtos import StockOutRequest, StockOutResult
from stockout_kernel.domain.journal import (
    JournalLineSpec,
    JournalPlan,
    build_description,
    build_journal_plan,
    loss_role_for,
)
from stockout_kernel.domain.reasons import (
    AdjustmentType,
    FinancialImpact,
    MovementType,
    StockOutReason,
    classify_impact,
    movement_type_for,
    reason_label,
    requires_journal_entry,
)
from stockout_kernel.domain.references import (
    ReferenceGenerator,
    format_gl_transaction_number,
)
from stockout_kernel.domain.settings import (
    AccountRole,
    AccountRoleSpec,
    AccountSettings,
    CostingSettings,
    DecrementStrategy,
    FallbackStrategy,
    InventorySettings,
    PostingMode,
    PostingSettings,
    StockOutSettings,
)

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "StockOutRequest",
    "StockOutResult",
    "JournalLineSpec",
    "JournalPlan",
    "build_description",
    "build_journal_plan",
    "loss_role_for",
    "AdjustmentType",
    "FinancialImpact",
    "MovementType",
    "StockOutReason",
    "classify_impact",
    "movement_type_for",
    "reason_label",
    "requires_journal_entry",
    "ReferenceGenerator",
    "format_gl_transaction_number",
    "AccountRole",
    "AccountRoleSpec",
    "AccountSettings",
    "CostingSettings",
    "DecrementStrategy",
    "FallbackStrategy",
    "InventorySettings",
    "PostingMode",
    "PostingSettings",
    "StockOutSettings",
]
