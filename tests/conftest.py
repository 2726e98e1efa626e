"""Shared fixtures: synthetic landmark sets and a fake landmark engine."""

from __future__ import annotations

import pytest

from core.head_pose import LEFT_CHEEK, LEFT_EYE, NOSE_TIP, RIGHT_CHEEK, RIGHT_EYE
from core.models import MESH_LANDMARK_COUNT, Landmark


class FakeEngine:
    """Records submissions; tests complete them through the gateway callbacks."""

    def __init__(self, fail_with: Exception | None = None) -> None:
        self.submissions: list[tuple[object, int]] = []
        self.fail_with = fail_with
        self.close_calls = 0

    def submit_async(self, image, timestamp_ms: int) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.submissions.append((image, timestamp_ms))

    def close(self) -> None:
        self.close_calls += 1

    @property
    def last_timestamp(self) -> int:
        return self.submissions[-1][1]


def frontal_face(**overrides: tuple[float, float]) -> tuple[Landmark, ...]:
    """
    468 landmarks of a level, frontal face: nose centered between the cheeks,
    eyes level, nose 0.15 below the eye line. Override points by index name,
    e.g. frontal_face(left_cheek=(0.8, 0.5)).
    """
    points = {
        NOSE_TIP: (0.5, 0.5),
        LEFT_CHEEK: (0.7, 0.5),
        RIGHT_CHEEK: (0.3, 0.5),
        LEFT_EYE: (0.4, 0.35),
        RIGHT_EYE: (0.6, 0.35),
    }
    names = {
        "nose": NOSE_TIP,
        "left_cheek": LEFT_CHEEK,
        "right_cheek": RIGHT_CHEEK,
        "left_eye": LEFT_EYE,
        "right_eye": RIGHT_EYE,
    }
    for name, xy in overrides.items():
        points[names[name]] = xy
    return tuple(
        Landmark(*points.get(i, (0.5, 0.5))) for i in range(MESH_LANDMARK_COUNT)
    )


@pytest.fixture
def fake_engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def face() -> tuple[Landmark, ...]:
    return frontal_face()
