"""Read-only selectors for the stock-out kernel."""

from stockout_kernel.selectors.base import BaseSelector
from stockout_kernel.selectors.stock_out_selector import (
    LedgerLineDTO,
    LedgerTransactionDTO,
    MovementDTO,
    StockOutDTO,
    StockOutSelector,
)

__all__ = [
    "BaseSelector",
    "LedgerLineDTO",
    "LedgerTransactionDTO",
    "MovementDTO",
    "StockOutDTO",
    "StockOutSelector",
]
