"""Expense splitting for a small fixed group: bills, balances and settlements."""
