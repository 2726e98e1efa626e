"""
Rule-based emotion classifier over MediaPipe face blendshape scores.
"""

from __future__ import annotations

from dataclasses import dataclass

from core.models import BlendshapeSet, Emotion, EmotionVerdict


@dataclass(frozen=True)
class EmotionThresholds:
    """Scores must be strictly greater than these to fire a rule."""

    blink: float = 0.5
    smile: float = 0.4
    angry: float = 0.4
    surprise: float = 0.3


DEFAULT_THRESHOLDS = EmotionThresholds()
# Stricter blink/surprise cut-offs, fewer false "Sleepy" while talking
STRICT_THRESHOLDS = EmotionThresholds(blink=0.6, surprise=0.4)

THRESHOLD_PROFILES = {
    "standard": DEFAULT_THRESHOLDS,
    "strict": STRICT_THRESHOLDS,
}


def thresholds_for(profile: str) -> EmotionThresholds:
    try:
        return THRESHOLD_PROFILES[profile]
    except KeyError:
        raise ValueError(
            f"Unknown threshold profile: {profile!r}. Known: {list(THRESHOLD_PROFILES)}"
        ) from None


def _pair(blendshapes: BlendshapeSet, left: str, right: str) -> float:
    return (float(blendshapes.get(left, 0.0)) + float(blendshapes.get(right, 0.0))) / 2.0


def classify(
    blendshapes: BlendshapeSet,
    thresholds: EmotionThresholds = DEFAULT_THRESHOLDS,
) -> EmotionVerdict:
    """
    Map blendshape scores to one emotion. Rules are checked in priority order
    (sleepy, happy, angry, surprised) and the first match wins; otherwise the
    face is neutral with confidence 1 - (smile + angry + surprise), clamped to
    [0, 1]. Missing names score 0.
    """
    smile = _pair(blendshapes, "mouthSmileLeft", "mouthSmileRight")
    angry = _pair(blendshapes, "browDownLeft", "browDownRight")
    surprise = _pair(blendshapes, "browInnerUp", "jawOpen")
    blink = _pair(blendshapes, "eyeBlinkLeft", "eyeBlinkRight")

    if blink > thresholds.blink:
        return EmotionVerdict(Emotion.SLEEPY, blink)
    if smile > thresholds.smile:
        return EmotionVerdict(Emotion.HAPPY, smile)
    if angry > thresholds.angry:
        return EmotionVerdict(Emotion.ANGRY, angry)
    if surprise > thresholds.surprise:
        return EmotionVerdict(Emotion.SURPRISED, surprise)
    neutral = 1.0 - (smile + angry + surprise)
    return EmotionVerdict(Emotion.NEUTRAL, min(max(neutral, 0.0), 1.0))
