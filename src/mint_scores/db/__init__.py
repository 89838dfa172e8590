# src/mint_scores/db/__init__.py
"""Database configuration and utilities.

Import `mint_scores.db.session` for the engine and session factory; the
package itself stays import-light so models and services can load without
touching application settings.
"""
