"""
Head pose (yaw / pitch / roll) from a handful of face mesh landmarks.

These are display approximations, not calibrated angles.
"""

from __future__ import annotations

import math

from core.models import UNKNOWN_POSE, LandmarkSet, PoseAngles

NOSE_TIP = 1
LEFT_CHEEK = 454
RIGHT_CHEEK = 234
LEFT_EYE = 33
RIGHT_EYE = 263

# Typical nose-to-eye-line vertical distance of a level face, normalized coords
NEUTRAL_NOSE_DROP = 0.15
YAW_SCALE = 45.0
PITCH_SCALE = 400.0

_REQUIRED = max(NOSE_TIP, LEFT_CHEEK, RIGHT_CHEEK, LEFT_EYE, RIGHT_EYE) + 1


def estimate(landmarks: LandmarkSet) -> PoseAngles:
    if len(landmarks) < _REQUIRED:
        return UNKNOWN_POSE
    nose = landmarks[NOSE_TIP]
    left_cheek = landmarks[LEFT_CHEEK]
    right_cheek = landmarks[RIGHT_CHEEK]
    left_eye = landmarks[LEFT_EYE]
    right_eye = landmarks[RIGHT_EYE]

    # Frontal face has the nose equidistant from both cheeks (ratio ~1)
    ratio = abs(nose.x - left_cheek.x) / (abs(right_cheek.x - nose.x) + 0.001)
    yaw = round((ratio - 1.0) * YAW_SCALE)

    eye_center_y = (left_eye.y + right_eye.y) / 2.0
    pitch = round((nose.y - eye_center_y - NEUTRAL_NOSE_DROP) * PITCH_SCALE)

    roll = round(math.degrees(math.atan2(right_eye.y - left_eye.y, right_eye.x - left_eye.x)))

    return PoseAngles(yaw=int(yaw), pitch=int(pitch), roll=int(roll))
