"""
Position bookkeeping.

Modules
-------
ledger : HoldingLedger — holdings + immutable trade history. Cash is never
         held here; the caller owns the balance and applies cash deltas.
"""
