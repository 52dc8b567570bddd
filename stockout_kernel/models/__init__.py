"""ORM models for the stock-out kernel."""

from stockout_kernel.models.account import Account, AccountRoleBinding, AccountType
from stockout_kernel.models.branch import Branch
from stockout_kernel.models.gl import (
    GLTransaction,
    GLTransactionItem,
    GLTransactionStatus,
    GLTransactionType,
)
from stockout_kernel.models.inventory import InventoryRecord
from stockout_kernel.models.movement import InventoryMovement
from stockout_kernel.models.product import Product
from stockout_kernel.models.stock_out import StockOutStatus, StockOutTransaction
from stockout_kernel.models.user import User, UserStatus

__all__ = [
    "Account",
    "AccountRoleBinding",
    "AccountType",
    "Branch",
    "Product",
    "User",
    "UserStatus",
    "InventoryRecord",
    "StockOutTransaction",
    "StockOutStatus",
    "InventoryMovement",
    "GLTransaction",
    "GLTransactionItem",
    "GLTransactionStatus",
    "GLTransactionType",
]
