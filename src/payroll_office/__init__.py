"""Payroll back office core.

Period lifecycle, sub-ledger attachment and payroll record computation.
"""

__version__ = "0.1.0"
