"""Services for the stock-out kernel (write side)."""

from stockout_kernel.services.account_resolver import AccountResolver
from stockout_kernel.services.actor_resolver import (
    ActorResolver,
    ActorStrategy,
    CurrentSessionStrategy,
    ExplicitActorStrategy,
    ExternalAuthStrategy,
    LocalSessionFileStrategy,
    RecentOnlineUserStrategy,
    acting_as,
)
from stockout_kernel.services.cost_resolver import CostResolution, CostResolver
from stockout_kernel.services.inventory_mutator import (
    ConditionalUpdateDecrementer,
    FallbackDecrementer,
    InventoryDecrementer,
    InventoryMutator,
    ReadModifyWriteDecrementer,
    StoredProcedureDecrementer,
    build_decrementer,
)
from stockout_kernel.services.journal_poster import JournalPoster
from stockout_kernel.services.movement_recorder import MovementRecorder
from stockout_kernel.services.sequence_service import SequenceService
from stockout_kernel.services.stock_out_service import StockOutService
from stockout_kernel.services.transfer_mirror import TransferMirror

__all__ = [
    "AccountResolver",
    "ActorResolver",
    "ActorStrategy",
    "ConditionalUpdateDecrementer",
    "CostResolution",
    "CostResolver",
    "CurrentSessionStrategy",
    "ExplicitActorStrategy",
    "ExternalAuthStrategy",
    "FallbackDecrementer",
    "InventoryDecrementer",
    "InventoryMutator",
    "JournalPoster",
    "LocalSessionFileStrategy",
    "MovementRecorder",
    "ReadModifyWriteDecrementer",
    "RecentOnlineUserStrategy",
    "SequenceService",
    "StockOutService",
    "StoredProcedureDecrementer",
    "TransferMirror",
    "acting_as",
    "build_decrementer",
]
