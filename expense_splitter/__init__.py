"""
Shared Expense Splitter

Split shared expenses between participants and work out who should pay whom.

The core is two pure functions:
    calculate_balances: participants + expenses -> net balance per participant
    optimize_settlements: balances -> list of transfers that settle everyone
"""

from expense_splitter.settlement import optimize_settlements
from expense_splitter.splitter import calculate_balances

__version__ = "1.0.0"

__all__ = ["calculate_balances", "optimize_settlements"]
