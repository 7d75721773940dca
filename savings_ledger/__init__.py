"""Command line entry points for the savings ledger."""
