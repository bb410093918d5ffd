from __future__ import annotations

"""手部角度提取：由 21 个关键点计算弯曲角、侧弯角、指间角与拇指-食指间距。

约定：
    - 纯函数，无状态，同一输入得到逐位相同的输出；
    - 缺失关键点（槽位为 None 或越界）时，依赖它的指标取默认值：
      弯曲/侧弯角为 0，指间角省略该键，间距为 0；
    - 存在但坐标非有限值（NaN/inf）的关键点视为上游数据损坏，
      抛出 LandmarkGeometryError。
"""

import math
from typing import Callable

from ..types import FingertipPair, HandLandmarks, HandMetrics, Landmark
from .hand_skeleton import FINGER_JOINTS, FINGERTIP_PAIRS, INDEX_TIP, THUMB_TIP


class LandmarkGeometryError(ValueError):
    """关键点坐标非有限值，无法进行几何计算。"""

    def __init__(self, index: int, landmark: Landmark) -> None:
        super().__init__(
            f"Non-finite landmark at index {index}: "
            f"({landmark.x}, {landmark.y}, {landmark.z})"
        )
        self.index = index
        self.landmark = landmark


# 平面投影：从三维点取出 (atan2 的第一参数, 第二参数)
_Plane = Callable[[Landmark], tuple[float, float]]


def _frontal(point: Landmark) -> tuple[float, float]:
    return point.y, point.x


def _lateral(point: Landmark) -> tuple[float, float]:
    return point.x, point.z


def _joint_angle(a: Landmark, b: Landmark, c: Landmark, plane: _Plane) -> float:
    """在给定平面内计算 b->a 与 b->c 的极角差（度），归一化到 [0, 180]。"""
    a1, a2 = plane(a)
    b1, b2 = plane(b)
    c1, c2 = plane(c)
    rad = math.atan2(c1 - b1, c2 - b2) - math.atan2(a1 - b1, a2 - b2)
    deg = abs(math.degrees(rad))
    return 360.0 - deg if deg > 180.0 else deg


def bend_angle(a: Landmark, b: Landmark, c: Landmark) -> float:
    """正面 (x, y) 平面内关节 b 处的弯曲角度。

    参数:
        a: 基部关键点。
        b: 中间关节关键点。
        c: 指尖关键点。

    返回:
        float: 角度，范围 [0, 180]；三点重合时为 0。
    """
    return _joint_angle(a, b, c, _frontal)


def side_bend_angle(a: Landmark, b: Landmark, c: Landmark) -> float:
    """侧面 (z, x) 平面内关节 b 处的弯曲角度（与 bend_angle 同一公式）。"""
    return _joint_angle(a, b, c, _lateral)


def fingertip_pair_angle(tip1: Landmark, tip2: Landmark) -> float:
    """指尖 tip1 -> tip2 向量的方向角绝对值（度），范围 [0, 180]。

    注意：取绝对值会丢失方向符号，保持与既有数据一致。
    """
    return abs(math.atan2(tip2.y - tip1.y, tip2.x - tip1.x) * 180.0 / math.pi)


def _check_finite(index: int, point: Landmark) -> None:
    if not (math.isfinite(point.x) and math.isfinite(point.y) and math.isfinite(point.z)):
        raise LandmarkGeometryError(index, point)


def validate_landmarks(landmarks: HandLandmarks) -> None:
    """校验全部已存在槽位的坐标为有限值（None 槽位跳过）。

    异常:
        LandmarkGeometryError: 任一存在的关键点含 NaN/inf。
    """
    for idx, point in enumerate(landmarks):
        if point is not None:
            _check_finite(idx, point)


def _present(landmarks: HandLandmarks, *indices: int) -> bool:
    """所需槽位全部存在（未越界且非 None）时返回 True，并校验坐标有限。"""
    for idx in indices:
        if idx < 0 or idx >= len(landmarks) or landmarks[idx] is None:
            return False
    for idx in indices:
        _check_finite(idx, landmarks[idx])
    return True


def _per_finger(
    landmarks: HandLandmarks,
    angle_fn: Callable[[Landmark, Landmark, Landmark], float],
) -> dict[str, float]:
    angles = {finger: 0.0 for finger in FINGER_JOINTS}
    for finger, (a, b, c) in FINGER_JOINTS.items():
        if _present(landmarks, a, b, c):
            angles[finger] = angle_fn(landmarks[a], landmarks[b], landmarks[c])
    return angles


def finger_angles(landmarks: HandLandmarks) -> dict[str, float]:
    """计算五指弯曲角度（固定 5 个键，缺失关键点的手指为 0）。

    参数:
        landmarks: 21 个关键点槽位。

    返回:
        dict[str, float]: finger_name -> 角度（度）。
    """
    return _per_finger(landmarks, bend_angle)


def side_bend_angles(landmarks: HandLandmarks) -> dict[str, float]:
    """计算五指侧弯角度（(z, x) 平面，键与缺失策略同 finger_angles）。"""
    return _per_finger(landmarks, side_bend_angle)


def finger_pair_angles(landmarks: HandLandmarks) -> dict[FingertipPair, float]:
    """计算 4 组相邻指尖的方向角；任一指尖缺失则省略该组。

    参数:
        landmarks: 21 个关键点槽位。

    返回:
        dict[FingertipPair, float]: 0~4 个条目，按拇指 -> 小指顺序。
    """
    angles: dict[FingertipPair, float] = {}
    for pair in FINGERTIP_PAIRS:
        if _present(landmarks, pair.first, pair.second):
            angles[pair] = fingertip_pair_angle(landmarks[pair.first], landmarks[pair.second])
    return angles


def thumb_index_gap(landmarks: HandLandmarks) -> float:
    """拇指尖与食指尖在 (x, y) 平面内的欧氏距离；任一缺失时为 0。"""
    if not _present(landmarks, THUMB_TIP, INDEX_TIP):
        return 0.0
    thumb = landmarks[THUMB_TIP]
    index = landmarks[INDEX_TIP]
    return math.hypot(index.x - thumb.x, index.y - thumb.y)


def extract_hand_metrics(landmarks: HandLandmarks) -> HandMetrics:
    """一次性计算单手全部指标。

    参数:
        landmarks: 21 个关键点槽位（Landmark 或 None）。

    返回:
        HandMetrics: 弯曲角、侧弯角、指间角与间距。

    异常:
        LandmarkGeometryError: 任一存在的关键点含非有限坐标（包括不参与角度计算的槽位）。
    """
    validate_landmarks(landmarks)
    return HandMetrics(
        finger_angles=finger_angles(landmarks),
        side_bend_angles=side_bend_angles(landmarks),
        finger_pair_angles=finger_pair_angles(landmarks),
        gap=thumb_index_gap(landmarks),
    )
