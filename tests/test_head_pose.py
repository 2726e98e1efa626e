"""PoseEstimator geometry."""

from __future__ import annotations

from conftest import frontal_face
from core.head_pose import estimate
from core.models import UNKNOWN_POSE, Landmark


def test_frontal_level_face_is_zero(face):
    pose = estimate(face)
    assert (pose.yaw, pose.pitch, pose.roll) == (0, 0, 0)
    assert pose.is_known


def test_head_turn_changes_yaw_sign():
    turned = estimate(frontal_face(left_cheek=(0.8, 0.5)))
    assert turned.yaw == 22
    other_way = estimate(frontal_face(left_cheek=(0.6, 0.5)))
    assert other_way.yaw < 0


def test_looking_down_is_positive_pitch():
    assert estimate(frontal_face(nose=(0.5, 0.6))).pitch == 40
    assert estimate(frontal_face(nose=(0.5, 0.45))).pitch == -20


def test_tilted_eyes_give_roll():
    pose = estimate(frontal_face(right_eye=(0.6, 0.55)))
    assert pose.roll == 45


def test_too_few_landmarks_is_unknown():
    assert estimate([]) is UNKNOWN_POSE
    assert estimate([Landmark(0.5, 0.5)] * 100) is UNKNOWN_POSE


def test_hud_text():
    assert UNKNOWN_POSE.hud_text() == ("Y: —", "P: —", "R: —")
    text = estimate(frontal_face(right_eye=(0.6, 0.55))).hud_text()
    assert text[2] == "R: 45°"
