# src/mint_scores/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .scores import router as scores_router

__all__ = ["scores_router"]
