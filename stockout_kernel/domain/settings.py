"""
Kernel settings.

Responsibility:
    Frozen, validated settings consumed by the stock-out services.  Built by
    ``stockout_config.bridges`` from a YAML configuration set, or constructed
    directly (``StockOutSettings()`` gives the shipped defaults).

Architecture position:
    Kernel > Domain.  The kernel never reads configuration files; it only
    receives a StockOutSettings instance.
"""

from dataclasses import dataclass, field
from enum import Enum


class PostingMode(str, Enum):
    """Transaction boundary of one stock-out.

    STAGED  commits (1) transaction + decrement + movement, (2) journal,
            (3) transfer mirror as separate units.
    ATOMIC  commits everything in one database transaction.
    """

    STAGED = "staged"
    ATOMIC = "atomic"


class DecrementStrategy(str, Enum):
    """How the source inventory row is decremented."""

    PROCEDURE = "procedure"
    CONDITIONAL = "conditional"
    READ_MODIFY_WRITE = "read_modify_write"


class FallbackStrategy(str, Enum):
    """Decrement used when the procedure capability is unavailable."""

    READ_MODIFY_WRITE = "read_modify_write"
    CONDITIONAL = "conditional"
    NONE = "none"


class AccountRole(str, Enum):
    """Semantic account roles used by the journal builder."""

    INVENTORY_ASSET = "INVENTORY_ASSET"
    LOSS_EXPIRED = "LOSS_EXPIRED"
    LOSS_DAMAGED = "LOSS_DAMAGED"
    LOSS_SHRINKAGE = "LOSS_SHRINKAGE"
    SUPPLIER_RETURNS_PAYABLE = "SUPPLIER_RETURNS_PAYABLE"


@dataclass(frozen=True)
class AccountRoleSpec:
    """Name-search fallback for one role.

    ``branch_name_template`` is tried first (formatted with ``branch_name``)
    when the role is resolved for a branch.
    """

    role: AccountRole
    account_name: str
    account_type: str
    branch_name_template: str | None = None


DEFAULT_ROLE_SPECS: tuple[AccountRoleSpec, ...] = (
    AccountRoleSpec(
        AccountRole.INVENTORY_ASSET,
        "Inventory",
        "asset",
        branch_name_template="Inventory - {branch_name}",
    ),
    AccountRoleSpec(AccountRole.LOSS_EXPIRED, "Inventory Loss - Expired Goods", "expense"),
    AccountRoleSpec(AccountRole.LOSS_DAMAGED, "Inventory Loss - Damaged Goods", "expense"),
    AccountRoleSpec(AccountRole.LOSS_SHRINKAGE, "Inventory Shrinkage / Theft Loss", "expense"),
    AccountRoleSpec(
        AccountRole.SUPPLIER_RETURNS_PAYABLE,
        "Accounts Payable - Supplier Returns",
        "liability",
    ),
)


@dataclass(frozen=True)
class PostingSettings:
    mode: PostingMode = PostingMode.STAGED
    post_zero_amount_entries: bool = False
    currency_decimal_places: int = 2


@dataclass(frozen=True)
class InventorySettings:
    decrement_strategy: DecrementStrategy = DecrementStrategy.PROCEDURE
    fallback_strategy: FallbackStrategy = FallbackStrategy.READ_MODIFY_WRITE


@dataclass(frozen=True)
class CostingSettings:
    lookback_movements: int = 10
    inbound_movement_types: tuple[str, ...] = ("purchase", "transfer_in")


@dataclass(frozen=True)
class AccountSettings:
    allow_name_fallback: bool = True
    roles: tuple[AccountRoleSpec, ...] = DEFAULT_ROLE_SPECS

    def spec_for(self, role: AccountRole) -> AccountRoleSpec | None:
        """Name-search spec for a role, if configured."""
        for spec in self.roles:
            if spec.role == role:
                return spec
        return None


@dataclass(frozen=True)
class StockOutSettings:
    """All settings for one stock-out engine instance."""

    config_id: str = "default"
    version: int = 1
    posting: PostingSettings = field(default_factory=PostingSettings)
    inventory: InventorySettings = field(default_factory=InventorySettings)
    costing: CostingSettings = field(default_factory=CostingSettings)
    accounts: AccountSettings = field(default_factory=AccountSettings)
