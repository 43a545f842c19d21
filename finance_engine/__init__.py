"""
Finance Engine - Source Package

The aggregation and projection core of a personal-finance dashboard.
Turns snapshots of transactions, accounts, cards, equities and budgets
into derived views, and guards the transaction write path.

DESIGN PRINCIPLES:
1. Pure functions over read-only snapshots
2. Fail early, fail visibly (malformed input raises)
3. No silent corrections (negative results are surfaced, never clamped)
4. Write-path decisions are auditable
5. Ambiguous product choices are explicit parameters
"""

__version__ = "1.0.0"
__author__ = "Finance Engine Team"
