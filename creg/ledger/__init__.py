"""Ledger collaborators: value transfer and time sources used by the registry."""
