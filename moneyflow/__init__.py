"""
MoneyFlow - Source Package

A personal finance ledger that tracks money as transfers between
named accounts, with recurring transfer templates and net worth history.

DESIGN PRINCIPLES:
1. Balances only move through the ledger
2. Fail early, fail visibly (every failure carries an error code)
3. No silent corrections
4. Every money movement is logged
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "MoneyFlow Team"
