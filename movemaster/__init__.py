"""
Move-Master - Ledger Core

Scheduling and bookkeeping for a small moving company: jobs, receipts,
drivers, trucks, dispatch rows and inventory, with day and month rollups.

DESIGN PRINCIPLES:
1. Persisted data is untrusted; normalizers coerce, never reject
2. One explicit Store, mutated only through the Ledger
3. Deletes unlink, they never cascade
4. Storage failures are logged, never fatal
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Move-Master Team"
