"""HTTP API for the royalty ledger."""
