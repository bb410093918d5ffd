from __future__ import annotations

"""全局数据结构与类型定义。"""

from dataclasses import dataclass
from typing import Any, Sequence


@dataclass(frozen=True)
class Landmark:
    """单个手部关键点（归一化相机坐标）。

    x/y 大致位于 [0, 1]（相对帧宽高），z 为检测器定义的相对深度。
    """

    x: float
    y: float
    z: float = 0.0


# HandLandmarks: 21 个槽位，缺失关键点以 None 占位
HandLandmarks = Sequence[Landmark | None]


@dataclass(frozen=True)
class FingertipPair:
    """相邻指尖索引对，作为指间角度的键。"""

    first: int
    second: int

    @property
    def key(self) -> str:
        """序列化时使用的字符串键，例如 "4_8"。"""
        return f"{self.first}_{self.second}"


@dataclass(frozen=True)
class RawHand:
    """检测器输出的单手原始结果。

    landmarks 中每个元素可以是带 x/y/z 属性的对象、dict、序列或 None。
    """

    handedness: str
    landmarks: Sequence[Any]


@dataclass(frozen=True)
class HandMetrics:
    """单手角度与间距指标。"""

    finger_angles: dict[str, float]
    side_bend_angles: dict[str, float]
    finger_pair_angles: dict[FingertipPair, float]
    gap: float


@dataclass(frozen=True)
class HandFrameRecord:
    """单帧单手的结构化记录。"""

    landmarks: tuple[Landmark | None, ...]
    finger_angles: dict[str, float]
    side_bend_angles: dict[str, float]
    finger_pair_angles: dict[FingertipPair, float]
    handedness: str  # "Left" 或 "Right"
    gap: float
    timestamp: float
