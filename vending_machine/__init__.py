"""
Coin vending machine simulation.

Product and coin inventory, a purchase state machine with greedy change
giving, status reporting and a JSON command interface.
"""

__version__ = "1.0.0"
