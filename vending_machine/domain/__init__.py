"""
Domain layer - Business logic.

Contains:
- Inventory store
- Change calculation
- Transaction state machine
"""

from .change_calculator import (
    ChangePlan,
    describe_shortfall,
    plan_change,
)
from .inventory import (
    InventoryStore,
    OverdrawConfirmation,
)
from .transaction_engine import (
    TransactionContext,
    TransactionEngine,
    TransactionPhase,
)


__all__ = [
    # Inventory
    "InventoryStore",
    "OverdrawConfirmation",
    # Change
    "ChangePlan",
    "describe_shortfall",
    "plan_change",
    # Transactions
    "TransactionContext",
    "TransactionEngine",
    "TransactionPhase",
]
