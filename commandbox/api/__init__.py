"""HTTP API for the command store."""
