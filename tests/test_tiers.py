"""Tests for discount tier classification."""

import math

import pytest

from mint_scores.services.tiers import PriceTier, TierClassifier, TierThresholds


@pytest.mark.parametrize(
    ("score", "tier"),
    [
        (10_000, PriceTier.S_TIER),
        (300, PriceTier.S_TIER),
        (299, PriceTier.A_TIER),
        (100, PriceTier.A_TIER),
        (99, PriceTier.B_TIER),
        (50, PriceTier.B_TIER),
        (49, PriceTier.C_TIER),
        (0, PriceTier.C_TIER),
        (-5, PriceTier.C_TIER),
    ],
)
def test_tier_boundaries(score: int, tier: PriceTier) -> None:
    assert TierClassifier().classify(score, "VALID") == tier


def test_unvalidated_score_is_classified_by_score_alone() -> None:
    assert TierClassifier().classify(150) == PriceTier.A_TIER


def test_invalid_verdict_always_maps_to_lowest_tier() -> None:
    assert TierClassifier().classify(1_000, "INVALID") == PriceTier.C_TIER


@pytest.mark.parametrize("score", [None, math.nan, math.inf, "300"])
def test_missing_or_non_finite_scores_map_to_lowest_tier(score: object) -> None:
    assert TierClassifier().classify(score) == PriceTier.C_TIER


def test_tiers_are_monotonic_in_score() -> None:
    classifier = TierClassifier()
    tiers = [classifier.classify(score, "VALID") for score in range(0, 400)]
    # A higher score never yields a worse (numerically larger) tier.
    assert all(later <= earlier for earlier, later in zip(tiers, tiers[1:]))


def test_custom_thresholds() -> None:
    classifier = TierClassifier(TierThresholds(s_tier=1000, a_tier=500, b_tier=10))
    assert classifier.classify(999) == PriceTier.A_TIER
    assert classifier.classify(10) == PriceTier.B_TIER
    assert classifier.classify(1000) == PriceTier.S_TIER


def test_price_tier_values() -> None:
    assert [int(tier) for tier in PriceTier] == [0, 1, 2, 3]
