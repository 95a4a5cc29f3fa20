"""
Pytest configuration for vending machine tests.

Adds the project root to sys.path so the tests run without installing
the package, and provides shared fixtures.
"""

import sys
from pathlib import Path

import pytest


project_root = Path(__file__).parent.parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from vending_machine.core.value_objects import CoinKind, CoinStack, Product  # noqa: E402
from vending_machine.domain.inventory import InventoryStore  # noqa: E402
from vending_machine.domain.transaction_engine import TransactionEngine  # noqa: E402


@pytest.fixture
def inventory():
    """Empty inventory store."""
    return InventoryStore()


@pytest.fixture
def engine(inventory):
    """Transaction engine over the empty store, rendering pounds."""
    return TransactionEngine(inventory, currency_symbol="£")


@pytest.fixture
def stocked_engine(engine):
    """Engine whose store holds Soda, Chips and Candy plus some coins."""
    engine.inventory.load_products([
        Product("Soda", "1.50", 10),
        Product("Chips", "1.00", 5),
        Product("Candy", "0.75", 20),
    ])
    engine.inventory.load_coins([
        CoinStack(CoinKind.ONE_POUND, 10),
        CoinStack(CoinKind.FIFTY_PENCE, 20),
    ])
    return engine
