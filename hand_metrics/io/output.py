from __future__ import annotations

"""输出模块：HandFrameRecord 序列化与 JSONL 记录器。

字符串指间角键（如 "4_8"）只在这里生成。
"""

import json
import sys
from typing import Iterable, TextIO

from ..features.summary import angle_matrix
from ..types import HandFrameRecord


def _round(value: float, precision: int | None) -> float:
    return value if precision is None else round(value, precision)


def record_to_dict(
    record: HandFrameRecord,
    precision: int | None = 4,
    include_matrix: bool = False,
) -> dict:
    """将单手记录转换为可 JSON 序列化的字典。

    参数:
        record: 单手记录。
        precision: 小数位数，None 表示不做舍入。
        include_matrix: 是否附带角度矩阵（angleMatrix，供图表消费）。

    返回:
        dict: 缺失关键点输出为 None，指间角键为 "<a>_<b>"。
    """
    landmarks = [
        None
        if point is None
        else {
            "x": _round(point.x, precision),
            "y": _round(point.y, precision),
            "z": _round(point.z, precision),
        }
        for point in record.landmarks
    ]
    data = {
        "landmarks": landmarks,
        "fingerAngles": {k: _round(v, precision) for k, v in record.finger_angles.items()},
        "sideBendAngles": {k: _round(v, precision) for k, v in record.side_bend_angles.items()},
        "fingerPairAngles": {
            pair.key: _round(v, precision) for pair, v in record.finger_pair_angles.items()
        },
        "handedness": record.handedness,
        "gap": _round(record.gap, precision),
        "timestamp": round(record.timestamp, 3),
    }
    if include_matrix:
        data["angleMatrix"] = [
            {
                "label": entry.label,
                "angle": _round(entry.angle, precision),
                "normalized": _round(entry.normalized, precision),
            }
            for entry in angle_matrix(record)
        ]
    return data


def frame_to_dict(
    records: Iterable[HandFrameRecord],
    frame_index: int,
    timestamp: float,
    precision: int | None = 4,
    include_matrix: bool = False,
) -> dict:
    """构建单帧输出记录（包含全部手，空帧时 hands 为空列表）。"""
    return {
        "ts": round(timestamp, 3),
        "frame": frame_index,
        "hands": [record_to_dict(record, precision, include_matrix) for record in records],
    }


class JsonlEmitter:
    """JSONL 输出器（逐行 JSON）。"""

    def __init__(self, stream: TextIO | None = None, include_matrix: bool = False) -> None:
        """初始化输出流。

        参数:
            stream: 目标输出流，默认为 stdout。
            include_matrix: 每只手是否附带 angleMatrix。
        """
        self._stream = stream or sys.stdout
        self._include_matrix = include_matrix

    def emit(self, record: dict) -> None:
        """输出单条记录。"""
        payload = json.dumps(record, ensure_ascii=True, allow_nan=False)
        self._stream.write(payload + "\n")
        self._stream.flush()

    def emit_frame(
        self,
        records: Iterable[HandFrameRecord],
        frame_index: int,
        timestamp: float,
    ) -> None:
        """序列化并输出一帧的全部手记录。"""
        self.emit(
            frame_to_dict(records, frame_index, timestamp, include_matrix=self._include_matrix)
        )
