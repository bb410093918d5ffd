from __future__ import annotations

"""预览叠加绘制与截图导出。"""

from pathlib import Path

import cv2
import numpy as np

from ..config import snapshot_dir, timestamp
from ..features.frame import AnnotateFn
from ..features.hand_skeleton import HAND_EDGES
from ..types import HandFrameRecord

# BGR：右手绿色，左手蓝色
HAND_COLORS = {
    "Right": (0, 255, 0),
    "Left": (255, 153, 0),
}
TEXT_LINE_HEIGHT = 18
TEXT_BLOCK_WIDTH = 260


def _to_pixels(record: HandFrameRecord, width: int, height: int) -> list[tuple[int, int] | None]:
    """将归一化关键点映射为像素坐标（缺失点保持 None）。"""
    return [
        None if point is None else (int(point.x * width), int(point.y * height))
        for point in record.landmarks
    ]


def hand_text_lines(record: HandFrameRecord) -> list[str]:
    """生成单手文字信息：拇指-食指间距 + 五指弯曲角。"""
    lines = [f"{record.handedness} Thumb-Index Gap: {record.gap * 100:.1f} px"]
    for finger, angle in record.finger_angles.items():
        lines.append(f"{finger}: {round(angle)} deg")
    return lines


def draw_hand(frame: np.ndarray, record: HandFrameRecord, hand_index: int = 0) -> None:
    """绘制手骨架、关键点与文字信息。

    多只手的文字块按 hand_index 横向错开，避免重叠。

    参数:
        frame: BGR 图像（原地绘制）。
        record: 单手记录。
        hand_index: 手在当前帧中的序号（>=0）。
    """
    height, width = frame.shape[:2]
    color = HAND_COLORS.get(record.handedness, (255, 255, 255))
    pixels = _to_pixels(record, width, height)

    for i, j in HAND_EDGES:
        p1, p2 = pixels[i], pixels[j]
        if p1 is not None and p2 is not None:
            cv2.line(frame, p1, p2, color, 2)
    for point in pixels:
        if point is not None:
            cv2.circle(frame, point, 2, color, -1)

    x = 10 + hand_index * TEXT_BLOCK_WIDTH
    y = 20
    for line in hand_text_lines(record):
        cv2.putText(frame, line, (x, y), cv2.FONT_HERSHEY_SIMPLEX, 0.45, color, 1, cv2.LINE_AA)
        y += TEXT_LINE_HEIGHT


def overlay_annotator(frame: np.ndarray) -> AnnotateFn:
    """返回绑定到指定帧的绘制回调，供 FrameAssembler 使用。"""

    def _annotate(record: HandFrameRecord, hand_index: int) -> None:
        draw_hand(frame, record, hand_index)

    return _annotate


def save_snapshot(frame: np.ndarray, directory: Path | None = None) -> Path:
    """将当前画面保存为 PNG（hand_scan_<YYYYmmdd_HHMMSS>.png）。

    参数:
        frame: BGR 图像。
        directory: 输出目录，默认 output/snapshots。

    返回:
        Path: 写入的文件路径。

    异常:
        RuntimeError: OpenCV 写文件失败。
    """
    target_dir = directory or snapshot_dir()
    target_dir.mkdir(parents=True, exist_ok=True)
    path = target_dir / f"hand_scan_{timestamp()}.png"
    if not cv2.imwrite(str(path), frame):
        raise RuntimeError(f"Failed to write snapshot: {path}")
    return path
