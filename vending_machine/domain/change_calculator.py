"""
Change Calculator - Greedy change planning over a coin stock.

Works on a read-only view of the stock; callers decide whether to apply
the resulting plan. Largest-first greedy is optimal for the canonical
1/2/5/10/20/50/100/200 denomination set.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping

from vending_machine.core.value_objects import CoinKind, format_money, to_money


@dataclass(frozen=True)
class ChangePlan:
    """
    Coins selected to pay out an amount.

    Attributes:
        requested: Amount that was asked for.
        coins: Coins to dispense, one entry per coin, largest first.
        remaining: Amount the stock could not cover.
    """

    requested: Decimal
    coins: tuple[CoinKind, ...] = ()
    remaining: Decimal = Decimal("0.00")

    @property
    def is_exact(self) -> bool:
        return self.remaining == 0

    @property
    def dispensed(self) -> Decimal:
        return to_money(sum((coin.amount for coin in self.coins), Decimal("0")))

    @property
    def counts(self) -> dict[CoinKind, int]:
        """Coins grouped by denomination, largest first."""
        grouped = Counter(self.coins)
        return {kind: grouped[kind] for kind in sorted(grouped, reverse=True)}


def plan_change(amount: Decimal, stock: Mapping[CoinKind, int]) -> ChangePlan:
    """
    Plan change for ``amount`` using the largest denominations first.

    Args:
        amount: Non-negative amount to pay out.
        stock: Available coins by denomination. Not modified.

    Returns:
        The plan; ``remaining`` is non-zero when the stock falls short.
    """
    remaining = to_money(amount)
    coins: list[CoinKind] = []

    for kind in sorted(stock, reverse=True):
        available = max(0, stock[kind])
        value = kind.amount
        if available == 0 or remaining < value:
            continue

        count = min(int(remaining // value), available)
        coins.extend([kind] * count)
        remaining = to_money(remaining - value * count)

        if remaining == 0:
            break

    return ChangePlan(requested=to_money(amount), coins=tuple(coins), remaining=remaining)


def describe_shortfall(remaining: Decimal, currency_symbol: str = "£") -> str:
    """
    Explain why change cannot be given.

    Names the missing coin when the leftover equals a denomination,
    otherwise reports the leftover amount.
    """
    missing = CoinKind.from_amount(remaining)
    if missing is not None:
        return f"Cannot give exact change. Missing coin: {missing.display_name}"
    return (
        f"Cannot give exact change. Remaining change: "
        f"{format_money(remaining, currency_symbol)}"
    )
