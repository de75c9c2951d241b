"""
Expense Tracker - Source Package

A personal expense tracker: expenses typed into a chat box are turned
into structured rows by a language model, receipts are kept in object
storage, and budgets are compared with actual spend.

DESIGN PRINCIPLES:
1. The model translates, the pipeline verifies
2. Fail early, fail visibly
3. No silent corrections beyond the stated lookup tables
4. Every write is audited
5. Backend, model and auth are injected, never global
"""

__version__ = "1.0.0"
__author__ = "Expense Tracker Team"
