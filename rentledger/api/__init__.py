"""HTTP layer of the rent ledger."""
