from __future__ import annotations

"""手部关键点拓扑定义（MediaPipe 手 21 点顺序）与指标所用的关节索引。"""

from ..types import FingertipPair

LANDMARK_COUNT = 21

WRIST = 0
THUMB_TIP = 4
INDEX_TIP = 8

# 手指名称顺序即输出顺序（拇指 -> 小指）
FINGER_NAMES = ("Thumb", "Index", "Middle", "Ring", "Pinky")

# 每根手指的 (基部, 中间关节, 指尖) 索引，用于弯曲角度
FINGER_JOINTS: dict[str, tuple[int, int, int]] = {
    "Thumb": (1, 2, 4),
    "Index": (5, 6, 8),
    "Middle": (9, 10, 12),
    "Ring": (13, 14, 16),
    "Pinky": (17, 18, 20),
}

FINGERTIP_INDICES = (4, 8, 12, 16, 20)

# 相邻指尖对：(4, 8), (8, 12), (12, 16), (16, 20)
FINGERTIP_PAIRS = tuple(
    FingertipPair(first, second)
    for first, second in zip(FINGERTIP_INDICES, FINGERTIP_INDICES[1:])
)


def _finger_chain(base: int) -> list[tuple[int, int]]:
    """生成 wrist -> base -> ... -> tip 的连线（每指 4 段）。"""
    chain = [(WRIST, base)]
    chain.extend((idx, idx + 1) for idx in range(base, base + 3))
    return chain


# 关键点连线（起点索引, 终点索引），绘制骨架用
HAND_EDGES = [edge for base in (1, 5, 9, 13, 17) for edge in _finger_chain(base)]
