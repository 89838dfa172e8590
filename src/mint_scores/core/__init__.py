"""Core configuration for the Mint Scores service."""
