"""
Stock Kernel

Inventory records, the stock-movement ledger and the stock-critical
alert state machine:
- Inclusive critical threshold with per-record overrides
- De-duplicated notifications with a cooldown
- Automatic resolution when stock recovers
- Every stock mutation and its evaluation committed together
"""

__version__ = "0.1.0"
