"""EmotionClassifier rule order, thresholds and defaults."""

from __future__ import annotations

import pytest

from core.emotion import DEFAULT_THRESHOLDS, STRICT_THRESHOLDS, classify, thresholds_for
from core.models import Emotion


def _both(left: str, right: str, value: float) -> dict[str, float]:
    return {left: value, right: value}


def test_smile_is_happy():
    verdict = classify({"mouthSmileLeft": 0.5, "mouthSmileRight": 0.5})
    assert verdict.label is Emotion.HAPPY
    assert verdict.confidence == pytest.approx(0.5)


def test_no_scores_is_fully_neutral():
    verdict = classify({})
    assert verdict.label is Emotion.NEUTRAL
    assert verdict.confidence == pytest.approx(1.0)


def test_blink_wins_over_smile():
    scores = {**_both("eyeBlinkLeft", "eyeBlinkRight", 0.55), **_both("mouthSmileLeft", "mouthSmileRight", 0.9)}
    assert classify(scores).label is Emotion.SLEEPY
    # Strict profile needs blink > 0.6, so the smile rule fires instead
    strict = classify(scores, STRICT_THRESHOLDS)
    assert strict.label is Emotion.HAPPY
    assert strict.confidence == pytest.approx(0.9)


def test_smile_wins_over_angry():
    scores = {**_both("mouthSmileLeft", "mouthSmileRight", 0.6), **_both("browDownLeft", "browDownRight", 0.8)}
    assert classify(scores).label is Emotion.HAPPY


def test_brow_down_is_angry():
    verdict = classify(_both("browDownLeft", "browDownRight", 0.6))
    assert verdict.label is Emotion.ANGRY
    assert verdict.confidence == pytest.approx(0.6)


def test_surprise_threshold_depends_on_profile():
    scores = {"browInnerUp": 0.35, "jawOpen": 0.35}
    standard = classify(scores, DEFAULT_THRESHOLDS)
    assert standard.label is Emotion.SURPRISED
    assert standard.confidence == pytest.approx(0.35)
    strict = classify(scores, STRICT_THRESHOLDS)
    assert strict.label is Emotion.NEUTRAL
    assert strict.confidence == pytest.approx(0.65)


def test_threshold_is_exclusive():
    verdict = classify(_both("mouthSmileLeft", "mouthSmileRight", 0.4))
    assert verdict.label is Emotion.NEUTRAL
    assert verdict.confidence == pytest.approx(0.6)


def test_one_sided_score_is_averaged_with_missing_zero():
    verdict = classify({"mouthSmileLeft": 0.9})
    assert verdict.label is Emotion.HAPPY
    assert verdict.confidence == pytest.approx(0.45)


def test_neutral_confidence_clamps_at_zero():
    scores = {
        **_both("mouthSmileLeft", "mouthSmileRight", 0.4),
        **_both("browDownLeft", "browDownRight", 0.4),
        "browInnerUp": 0.3,
        "jawOpen": 0.3,
    }
    verdict = classify(scores)
    assert verdict.label is Emotion.NEUTRAL
    assert verdict.confidence == 0.0


def test_unrelated_blendshapes_are_ignored():
    verdict = classify({"cheekPuff": 1.0, "tongueOut": 1.0})
    assert verdict.label is Emotion.NEUTRAL
    assert verdict.confidence == pytest.approx(1.0)


def test_threshold_profiles():
    assert thresholds_for("standard") == DEFAULT_THRESHOLDS
    assert thresholds_for("strict").blink == 0.6
    with pytest.raises(ValueError):
        thresholds_for("lenient")


def test_labels_and_emoji():
    assert Emotion.SLEEPY.label == "Sleepy/Blinking"
    assert len({e.emoji for e in Emotion}) == len(Emotion)
