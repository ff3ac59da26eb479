"""Check-in ledger, calendar normalization and streak rules."""
