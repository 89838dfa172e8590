"""API layer for the Mint Scores service."""
