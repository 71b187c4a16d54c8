"""
HowSplit - Shared Expense Ledger

Tracks what a household spends together and works out who should
pay whom to settle up.

DESIGN PRINCIPLES:
1. Balances are always derived, never stored
2. Reject bad input at the door, skip bad history quietly
3. Same history in, same transfers out
4. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "HowSplit Team"
