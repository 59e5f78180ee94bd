"""Ledger store package."""

from finance_planner.ledger.store import LedgerStore, MutationSubscriber
from finance_planner.ledger.samples import load_sample_data

__all__ = ["LedgerStore", "MutationSubscriber", "load_sample_data"]
