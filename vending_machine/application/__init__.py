"""
Application layer - Application services and use cases.

Contains:
- Inventory reporting
- API facade
- Command handlers
"""

from .reporting import InventoryReporter
from .api_facade import VendingMachineFacade
from .command_handler import CommandHandler, CommandResponse, vending_machine_commands


__all__ = [
    "InventoryReporter",
    "VendingMachineFacade",
    "CommandHandler",
    "CommandResponse",
    "vending_machine_commands",
]
