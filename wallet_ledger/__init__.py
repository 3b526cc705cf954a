"""Wallet ledger: idempotent, concurrency-safe account balance mutations."""
