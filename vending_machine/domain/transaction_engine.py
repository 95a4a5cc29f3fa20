"""
Transaction Engine - Manages the purchase lifecycle.

Product selection, coin insertion, change feasibility, change and product
dispensing, and refunds. All public operations run under one lock so the
fold / check / dispense sequence of a purchase is a single critical section.
"""

from __future__ import annotations

import threading
from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum, auto
from typing import Any, Callable, Optional

from vending_machine.core.exceptions import (
    InsufficientCoinStockError,
    ProductUnavailableError,
)
from vending_machine.core.value_objects import (
    CoinKind,
    CoinStack,
    ErrorCode,
    OperationResult,
    Product,
    format_money,
    to_money,
)
from vending_machine.domain.change_calculator import describe_shortfall, plan_change
from vending_machine.domain.inventory import InventoryStore
from vending_machine.infrastructure.settings import get_settings
from vending_machine.loggers import logger


# =============================================================================
# Transaction Phases
# =============================================================================


class TransactionPhase(Enum):
    """Phases of a purchase."""

    IDLE = auto()               # Nothing selected
    PRODUCT_SELECTED = auto()   # Product chosen, accepting coins
    COMPLETED = auto()          # Outcome only: product and change delivered
    CANCELLED = auto()          # Outcome only: coins returned, nothing delivered


# =============================================================================
# Transaction Context
# =============================================================================


@dataclass
class TransactionContext:
    """
    State of the current purchase.

    ``phase`` only ever holds ``IDLE`` or ``PRODUCT_SELECTED``; how a
    transaction ended is kept in ``TransactionEngine.last_outcome``.
    ``product_name`` is only meaningful in ``PRODUCT_SELECTED``.
    """

    phase: TransactionPhase = TransactionPhase.IDLE
    product_name: Optional[str] = None
    inserted_coins: list[CoinKind] = field(default_factory=list)

    @property
    def is_selected(self) -> bool:
        return self.phase is TransactionPhase.PRODUCT_SELECTED

    @property
    def total(self) -> Decimal:
        """Sum of inserted coins, rounded to two decimal places."""
        return to_money(sum((coin.amount for coin in self.inserted_coins), Decimal("0")))

    def select(self, product_name: str) -> None:
        # Inserted coins carry over to the new selection
        self.phase = TransactionPhase.PRODUCT_SELECTED
        self.product_name = product_name

    def reset(self) -> None:
        """Return to idle and forget inserted coins."""
        self.phase = TransactionPhase.IDLE
        self.product_name = None
        self.inserted_coins = []


# =============================================================================
# Transaction Engine
# =============================================================================


class TransactionEngine:
    """
    State machine for vending machine purchases.

    Drives a purchase from product selection through coin insertion to
    delivery of the product and change, reading and writing the
    inventory store along the way.
    """

    def __init__(
        self,
        inventory: InventoryStore,
        currency_symbol: Optional[str] = None,
    ) -> None:
        """
        Initialize the engine.

        Args:
            inventory: Store holding product and coin stock.
            currency_symbol: Symbol used in messages; defaults to settings.
        """
        self._inventory = inventory
        self._currency = currency_symbol or get_settings().machine.currency_symbol
        self._context = TransactionContext()
        self._last_outcome: Optional[TransactionPhase] = None
        self._lock = threading.RLock()
        self._on_coin_inserted: Optional[Callable[[CoinKind, Decimal], Any]] = None
        self._on_purchase_complete: Optional[Callable[[Product, list[CoinKind]], Any]] = None

    @property
    def inventory(self) -> InventoryStore:
        return self._inventory

    @property
    def phase(self) -> TransactionPhase:
        """Get the current transaction phase."""
        return self._context.phase

    @property
    def last_outcome(self) -> Optional[TransactionPhase]:
        """How the previous transaction ended: COMPLETED, CANCELLED or None."""
        return self._last_outcome

    @property
    def inserted_coins(self) -> list[CoinKind]:
        return list(self._context.inserted_coins)

    @property
    def inserted_total(self) -> Decimal:
        return self._context.total

    @property
    def selected_product(self) -> Optional[Product]:
        """Snapshot of the selected product, or None when idle."""
        if not self._context.is_selected:
            return None
        return self._inventory.get_product(self._context.product_name)

    def set_on_coin_inserted(self, callback: Callable[[CoinKind, Decimal], Any]) -> None:
        """Set callback receiving each inserted coin and the running total."""
        self._on_coin_inserted = callback

    def set_on_purchase_complete(self, callback: Callable[[Product, list[CoinKind]], Any]) -> None:
        """Set callback receiving the delivered product and the change coins."""
        self._on_purchase_complete = callback

    # =========================================================================
    # Selection
    # =========================================================================

    def select_product(self, name: Optional[str]) -> OperationResult[Product]:
        """
        Select a product to buy.

        Previously inserted coins stay credited to the new selection.

        Returns:
            Result with a snapshot of the selected product.
        """
        with self._lock:
            if name is None or not str(name).strip():
                return OperationResult.fail(
                    ErrorCode.INVALID_SELECTION, "Invalid product selection. Please try again."
                )

            product = self._inventory.get_product(name)
            if product is None:
                return OperationResult.fail(
                    ErrorCode.PRODUCT_NOT_FOUND, f"The product '{name}' does not exist."
                )
            if product.stock <= 0:
                return OperationResult.fail(
                    ErrorCode.PRODUCT_OUT_OF_STOCK, f"The product '{name}' is out of stock."
                )

            if self._context.is_selected and self._context.inserted_coins:
                logger.info(
                    f"Switching selection to '{name}' with "
                    f"{format_money(self._context.total, self._currency)} already inserted"
                )
            self._context.select(product.name)
            logger.info(f"Selected '{product.name}' at {format_money(product.price, self._currency)}")
            return OperationResult.ok(product)

    # =========================================================================
    # Payment
    # =========================================================================

    def insert_money(self, coin: Any) -> OperationResult[Decimal]:
        """
        Insert a coin for the selected product.

        Once the total covers the price the purchase completes: the coins
        are folded into machine stock, change is checked and paid out, and
        the product is delivered. Any failure during completion refunds the
        inserted coins.

        Args:
            coin: A ``CoinKind``, its pence value or its display name.

        Returns:
            Result with the running total. ``INSUFFICIENT_FUNDS`` means
            keep inserting; every other failure ends the transaction.
        """
        with self._lock:
            if not self._context.is_selected:
                return OperationResult.fail(ErrorCode.NO_PRODUCT_SELECTED, "No product selected.")

            try:
                kind = CoinKind.parse(coin)
            except ValueError:
                return OperationResult.fail(ErrorCode.INVALID_COIN_TYPE, "Invalid coin type.")

            self._context.inserted_coins.append(kind)
            total = self._context.total
            logger.info(f"Inserted {kind.display_name}. Credit: {format_money(total, self._currency)}")
            self._notify(self._on_coin_inserted, kind, total)

            product = self._inventory.get_product(self._context.product_name)
            if product is None:
                name = self._context.product_name
                refunded = self._cancel(claw_back=False)
                return OperationResult.fail(
                    ErrorCode.PRODUCT_NOT_FOUND,
                    f"The product '{name}' does not exist.",
                    refunded_coins=refunded,
                )

            if total < product.price:
                return OperationResult.fail(
                    ErrorCode.INSUFFICIENT_FUNDS,
                    f"Insufficient funds. Inserted: {format_money(total, self._currency)}, "
                    f"Price: {format_money(product.price, self._currency)}",
                    value=total,
                    remaining=to_money(product.price - total),
                )

            return self._complete_purchase(product, total)

    def _complete_purchase(self, product: Product, total: Decimal) -> OperationResult[Decimal]:
        """Fold coins into stock, pay change and deliver the product."""
        logger.info(f"=== COMPLETING PURCHASE: {product.name} ===")

        grouped = Counter(self._context.inserted_coins)
        folded = self._inventory.load_coins([CoinStack(kind, count) for kind, count in grouped.items()])
        if not folded.success:
            logger.error(f"Error loading coins into machine: {folded.message}")
            refunded = self._cancel(claw_back=False)
            return OperationResult.fail(
                ErrorCode.COIN_LOADING_ERROR,
                "Error loading coins into machine. Returning inserted coins.",
                refunded_coins=refunded,
            )

        change_due = to_money(total - product.price)

        feasible = self.can_give_change(change_due)
        if not feasible.success:
            logger.warning(feasible.message)
            refunded = self._cancel(claw_back=True)
            return OperationResult.fail(
                ErrorCode.CANNOT_GIVE_CHANGE,
                feasible.message,
                refunded_coins=refunded,
                change_due=change_due,
            )

        change = self._give_change(change_due)
        if not change.success:
            logger.error(f"Error giving change: {change.message}")
            refunded = self._cancel(claw_back=True)
            return OperationResult.fail(
                ErrorCode.CANNOT_GIVE_CHANGE,
                "Error giving change. Returning inserted coins.",
                refunded_coins=refunded,
                change_due=change_due,
            )

        delivered = self._give_product()
        if not delivered.success:
            logger.error(f"Error delivering product: {delivered.message}")
            self._restock_change(change.value)
            refunded = self._cancel(claw_back=True)
            return OperationResult.fail(
                ErrorCode.PRODUCT_DELIVERY_ERROR,
                "Error delivering product. Returning inserted coins.",
                refunded_coins=refunded,
            )

        self._last_outcome = TransactionPhase.COMPLETED
        logger.info(
            f"Purchase completed: {product.name}, paid {format_money(total, self._currency)}, "
            f"change {format_money(change_due, self._currency)}"
        )
        self._notify(self._on_purchase_complete, delivered.value, change.value)

        return OperationResult.ok(
            total,
            f"Enjoy your {product.name}!",
            product=delivered.value,
            change=change.value,
            change_due=change_due,
        )

    # =========================================================================
    # Change
    # =========================================================================

    def can_give_change(self, amount: Any) -> OperationResult[bool]:
        """
        Check whether the machine can pay ``amount`` from its current stock.

        Stock is not modified.
        """
        with self._lock:
            try:
                amount = to_money(amount)
            except ValueError:
                return OperationResult.fail(
                    ErrorCode.CANNOT_GIVE_CHANGE, f"Invalid change amount: {amount!r}", value=False
                )

            if amount < 0:
                return OperationResult.fail(
                    ErrorCode.CANNOT_GIVE_CHANGE, "Change cannot be negative.", value=False
                )
            if amount == 0:
                return OperationResult.ok(True)

            plan = plan_change(amount, self._inventory.coins())
            if not plan.is_exact:
                return OperationResult.fail(
                    ErrorCode.CANNOT_GIVE_CHANGE,
                    describe_shortfall(plan.remaining, self._currency),
                    value=False,
                    remaining=plan.remaining,
                )
            return OperationResult.ok(True, coins=list(plan.coins))

    def _give_change(self, amount: Decimal) -> OperationResult[list[CoinKind]]:
        """Pay ``amount`` out of the real coin stock."""
        if amount <= 0:
            return OperationResult.ok([])

        logger.info(f"Processing change: {format_money(amount, self._currency)}")
        plan = plan_change(amount, self._inventory.coins())
        if not plan.is_exact:
            return OperationResult.fail(
                ErrorCode.CANNOT_GIVE_CHANGE,
                describe_shortfall(plan.remaining, self._currency),
            )

        try:
            self._inventory.withdraw_coins(plan.counts)
        except InsufficientCoinStockError as e:
            return OperationResult.fail(ErrorCode.CANNOT_GIVE_CHANGE, e.message)

        return OperationResult.ok(list(plan.coins))

    def _restock_change(self, coins: list[CoinKind]) -> None:
        if not coins:
            return
        grouped = Counter(coins)
        self._inventory.load_coins([CoinStack(kind, count) for kind, count in grouped.items()])

    # =========================================================================
    # Delivery and Refunds
    # =========================================================================

    def _give_product(self) -> OperationResult[Product]:
        """Take one unit of the selected product and end the transaction."""
        try:
            product = self._inventory.take_product(self._context.product_name)
        except ProductUnavailableError as e:
            return OperationResult.fail(ErrorCode.PRODUCT_DELIVERY_ERROR, e.message)

        logger.info(f"{product.name} coming out")
        self._context.reset()
        return OperationResult.ok(product)

    def return_inserted_coins(self, give_change_from_machine: bool = False) -> list[CoinKind]:
        """
        Hand back the inserted coins and end the transaction.

        Args:
            give_change_from_machine: Also remove the same coins from machine
                stock, undoing a purchase attempt that already folded them in.

        Returns:
            The inserted coins in insertion order; empty if none.
        """
        with self._lock:
            returned = list(self._context.inserted_coins)

            if give_change_from_machine and returned:
                grouped = Counter(returned)
                result = self._inventory.unload_coins(
                    [CoinStack(kind, count) for kind, count in grouped.items()],
                    confirm=lambda *_: True,
                )
                if (result.value or 0) < len(returned):
                    logger.warning(
                        f"Could only take {result.value} of {len(returned)} returned coins "
                        f"back out of machine stock"
                    )

            if returned:
                logger.info(
                    "Returning inserted coins: "
                    + ", ".join(coin.display_name for coin in returned)
                )

            if self._context.is_selected:
                self._last_outcome = TransactionPhase.CANCELLED
            self._context.reset()
            return returned

    def _cancel(self, claw_back: bool) -> list[CoinKind]:
        refunded = self.return_inserted_coins(give_change_from_machine=claw_back)
        self._last_outcome = TransactionPhase.CANCELLED
        return refunded

    def _notify(self, callback: Optional[Callable[..., Any]], *args: Any) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception as e:
            logger.error(f"Transaction callback error: {e}")
