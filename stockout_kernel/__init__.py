"""
Stock-Out Kernel

Retires inventory for non-sale reasons and posts the financial consequence:
- Reason classification into loss / neutral impact
- Unit costing from inbound history
- Balanced double-entry ledger postings
- Append-only inventory movement audit rows
- Inter-branch transfer mirroring
"""

__version__ = "0.1.0"
