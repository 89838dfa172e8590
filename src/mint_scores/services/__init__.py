# src/mint_scores/services/__init__.py
"""Business logic services for the Mint Scores backend.

Only the storage-independent pieces are re-exported here; import
`mint_scores.services.session_store` and `mint_scores.services.scores`
directly for the persistence-backed services.
"""

from .anti_cheat import AntiCheatPolicy, AntiCheatValidator, RejectionReason, Verdict
from .store_errors import (
    SessionExistsError,
    SessionNotFoundError,
    SessionStoreError,
    StoreErrorKind,
    StoreUnavailableError,
)
from .tiers import PriceTier, TierClassifier, TierThresholds

__all__ = [
    "AntiCheatPolicy",
    "AntiCheatValidator",
    "RejectionReason",
    "Verdict",
    "SessionExistsError",
    "SessionNotFoundError",
    "SessionStoreError",
    "StoreErrorKind",
    "StoreUnavailableError",
    "PriceTier",
    "TierClassifier",
    "TierThresholds",
]
