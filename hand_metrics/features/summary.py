from __future__ import annotations

"""角度矩阵：为图表/列表展示整理单手的弯曲角与指间角。"""

from dataclasses import dataclass

from ..types import HandFrameRecord


@dataclass(frozen=True)
class AngleEntry:
    """单个角度条目（normalized = angle / 180，范围 [0, 1]）。"""

    label: str
    angle: float
    normalized: float


def angle_matrix(record: HandFrameRecord) -> list[AngleEntry]:
    """生成角度矩阵：先五指弯曲角，再相邻指尖角（标签形如 "4–8"）。

    参数:
        record: 单手记录。

    返回:
        list[AngleEntry]: 展示用条目列表。
    """
    entries = [
        AngleEntry(label=finger, angle=angle, normalized=angle / 180.0)
        for finger, angle in record.finger_angles.items()
    ]
    for pair, angle in record.finger_pair_angles.items():
        entries.append(
            AngleEntry(label=f"{pair.first}–{pair.second}", angle=angle, normalized=angle / 180.0)
        )
    return entries


def correlation_series(record: HandFrameRecord | None) -> tuple[list[str], list[float]]:
    """折线图数据：(标签, 角度)，弯曲角在前、指间角在后；无记录时为空。"""
    if record is None:
        return [], []
    labels = list(record.finger_angles)
    values = list(record.finger_angles.values())
    for pair, angle in record.finger_pair_angles.items():
        labels.append(pair.key)
        values.append(angle)
    return labels, values
