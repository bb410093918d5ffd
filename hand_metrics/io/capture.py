from __future__ import annotations

"""摄像头输入封装。"""

import time
from typing import Iterator

import cv2
import numpy as np

from ..config import is_windows


def backend_candidates() -> list[tuple[str, int]]:
    """获取当前平台推荐的视频后端列表（按优先级排序）。

    返回:
        list[tuple[str, int]]: (名称, OpenCV 后端常量) 列表。
    """
    candidates: list[tuple[str, int]] = []
    preferred = ("CAP_DSHOW", "CAP_MSMF") if is_windows() else ("CAP_V4L2",)
    for attr in preferred:
        if hasattr(cv2, attr):
            candidates.append((attr[4:], getattr(cv2, attr)))
    candidates.append(("ANY", cv2.CAP_ANY))
    return candidates


def open_capture(
    source: int | str,
    width: int | None = None,
    height: int | None = None,
    fps: float | None = None,
) -> tuple[cv2.VideoCapture | None, str]:
    """打开摄像头或视频流，并尝试设置采集参数（部分设备可能忽略）。

    参数:
        source: 摄像头索引（int）或设备路径/URL（str）。
        width: 期望宽度（像素）。
        height: 期望高度（像素）。
        fps: 期望帧率。

    返回:
        tuple[cv2.VideoCapture | None, str]: (cap, backend_name)。
    """
    last_backend = "ANY"
    for name, backend in backend_candidates():
        cap = cv2.VideoCapture(source, backend)
        if cap.isOpened():
            if width:
                cap.set(cv2.CAP_PROP_FRAME_WIDTH, int(width))
            if height:
                cap.set(cv2.CAP_PROP_FRAME_HEIGHT, int(height))
            if fps and fps >= 1:
                cap.set(cv2.CAP_PROP_FPS, float(fps))
            return cap, name
        cap.release()
        last_backend = name
    return None, last_backend


def read_frames(cap: cv2.VideoCapture, mirror: bool = True) -> Iterator[tuple[np.ndarray, float]]:
    """逐帧读取，直到读取失败。

    参数:
        cap: 已打开的 VideoCapture。
        mirror: 是否水平翻转（自拍视角）。

    返回:
        Iterator[tuple[np.ndarray, float]]: (BGR 帧, 采集时间戳秒)。
    """
    while True:
        ok, frame = cap.read()
        if not ok or frame is None:
            return
        captured_at = time.time()
        if mirror:
            frame = cv2.flip(frame, 1)
        yield frame, captured_at
