"""Discount tier classification."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any

from mint_scores.models.game_session import VALIDATION_INVALID
from mint_scores.services.anti_cheat import is_valid_score


class PriceTier(IntEnum):
    """Purchase discount tiers; lower is better."""

    S_TIER = 0
    A_TIER = 1
    B_TIER = 2
    C_TIER = 3


@dataclass(frozen=True)
class TierThresholds:
    """Inclusive lower score bounds for the S, A and B tiers."""

    s_tier: int = 300
    a_tier: int = 100
    b_tier: int = 50


class TierClassifier:
    """Map a score and its verdict to a `PriceTier`."""

    def __init__(self, thresholds: TierThresholds | None = None) -> None:
        self.thresholds = thresholds or TierThresholds()

    def classify(self, score: Any, validation_result: str | None = None) -> PriceTier:
        """Return the tier for ``score``.

        INVALID verdicts, missing scores and non-finite scores always map to
        the lowest tier. Bands are checked high to low and the first match wins.
        """
        if validation_result == VALIDATION_INVALID or not is_valid_score(score):
            return PriceTier.C_TIER

        thresholds = self.thresholds
        if score >= thresholds.s_tier:
            return PriceTier.S_TIER
        if score >= thresholds.a_tier:
            return PriceTier.A_TIER
        if score >= thresholds.b_tier:
            return PriceTier.B_TIER
        return PriceTier.C_TIER
