"""
Fuel Kernel

Per-truck fuel allocation bookkeeping for a multi-leg cross-border route:
- Delivery orders (going / returning legs)
- Fuel records with per-checkpoint debits and a derived balance
- Local purchase orders (LPOs) that debit the ledger
- Administrator-maintained fuel configuration tables
"""

__version__ = "0.1.0"
