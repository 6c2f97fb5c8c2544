"""Runtime services built on top of the ledger package."""
