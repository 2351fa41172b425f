"""
FinLedger - Source Package

The recurring-transaction and budget engine behind a personal-finance ledger.
Users record income and expenses, set monthly budget targets per category and
define recurring templates (salary, rent, subscriptions) that appear as
transactions every applicable month.

DESIGN PRINCIPLES:
1. The core is pure: snapshots in, results or mutations out
2. Materialization is idempotent, keyed on (template, month)
3. No silent corrections
4. Every ledger mutation is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "FinLedger Team"
