from __future__ import annotations

import math

import pytest

from hand_metrics.types import Landmark, RawHand

# 每根手指的基部索引与在画面中的方向（度，y 轴向下）
_FINGER_LAYOUT = {
    1: -150.0,  # thumb
    5: -110.0,  # index
    9: -90.0,   # middle
    13: -70.0,  # ring
    17: -50.0,  # pinky
}


def _straight_hand() -> list[Landmark]:
    """21 点伸直手：每根手指的 4 个点沿一条射线等距排列。"""
    points: list[Landmark] = [Landmark(0.5, 0.9, 0.0)]
    for base, direction in _FINGER_LAYOUT.items():
        rad = math.radians(direction)
        dx, dy = math.cos(rad), math.sin(rad)
        for step in range(4):
            dist = 0.1 + 0.05 * step
            points.append(Landmark(0.5 + dx * dist, 0.9 + dy * dist, -0.01 * step))
    assert len(points) == 21
    return points


@pytest.fixture
def straight_hand() -> list[Landmark]:
    return _straight_hand()


@pytest.fixture
def make_raw_hand():
    """构造 RawHand；points 默认为伸直手的 (x, y, z) 元组。"""

    def _make(handedness: str = "Right", points=None) -> RawHand:
        if points is None:
            points = [(p.x, p.y, p.z) for p in _straight_hand()]
        return RawHand(handedness=handedness, landmarks=points)

    return _make
