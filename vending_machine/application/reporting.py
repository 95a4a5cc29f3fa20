"""
Reporting - Human-readable inventory listings.

Read-only over the inventory store.
"""

from typing import Optional

from vending_machine.core.value_objects import format_money
from vending_machine.domain.inventory import InventoryStore
from vending_machine.infrastructure.settings import get_settings


NO_COINS_MESSAGE = "No coins available in the machine."


class InventoryReporter:
    """Renders product and coin status lines for an inventory store."""

    def __init__(self, inventory: InventoryStore, currency_symbol: Optional[str] = None) -> None:
        self._inventory = inventory
        self._currency = currency_symbol or get_settings().machine.currency_symbol

    def money(self, amount) -> str:
        return format_money(amount, self._currency)

    def product_status(self, include_index: bool = False, include_total: bool = False) -> list[str]:
        """
        List products as ``- Soda: £1.50 (Stock: 10)``.

        Args:
            include_index: Prefix lines with ``0)``, ``1)``... instead of ``-``.
            include_total: Append the total value of stocked products.
        """
        lines = []
        for index, product in enumerate(self._inventory.products()):
            prefix = f"{index})" if include_index else "-"
            lines.append(
                f"{prefix} {product.name}: {self.money(product.price)} (Stock: {product.stock})"
            )

        if include_total:
            lines.append(
                f"Total value of products: {self.money(self._inventory.total_product_value())}"
            )
        return lines

    def coins_status(self, include_total: bool = True) -> list[str]:
        """
        List stocked coins as ``- £1: 5 coins (Value: £5.00)``, largest first.

        Denominations with no coins are left out.
        """
        stocked = [(kind, count) for kind, count in self._inventory.coins().items() if count > 0]
        if not stocked:
            return [NO_COINS_MESSAGE]

        lines = [
            f"- {kind.display_name}: {count} coins (Value: {self.money(kind.amount * count)})"
            for kind, count in stocked
        ]
        if include_total:
            lines.append(f"Total money in machine: {self.money(self._inventory.total_coin_value())}")
        return lines
