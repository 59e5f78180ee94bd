"""
Finance Planner - Source Package

A personal finance ledger engine: transactions, monthly budgets,
summaries, trends, budget advisories and export shaping.

DESIGN PRINCIPLES:
1. The ledger store is the only writer
2. Invalid input is rejected, never silently corrected
3. Advisories inform but never block
4. Every mutation is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Finance Planner Team"
