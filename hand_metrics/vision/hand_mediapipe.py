from __future__ import annotations

"""MediaPipe Hand Landmarker 推理封装。

说明：
    - 使用官方 Hand Landmarker 任务模型（.task）
    - 采用 VIDEO 运行模式，以复用上一帧的手部 ROI（官方推荐的追踪方式）
    - 输出保持归一化坐标 (x, y, z)，供帧组装器计算角度
    - 若模型文件不存在，会自动下载到指定路径
"""

import logging
from pathlib import Path
from typing import Any
from urllib.request import urlretrieve

import cv2
import mediapipe as mp
import numpy as np

from ..types import RawHand

logger = logging.getLogger(__name__)

# 官方模型下载地址（Hand Landmarker 模型包）
HAND_LANDMARKER_URL = (
    "https://storage.googleapis.com/mediapipe-models/hand_landmarker/"
    "hand_landmarker/float16/1/hand_landmarker.task"
)


def ensure_hand_model(model_path: Path) -> Path:
    """确保 hand_landmarker.task 存在，不存在则自动下载。

    参数:
        model_path: 模型文件路径（应为 .task）。

    返回:
        Path: 实际可用的模型文件路径。

    异常:
        FileNotFoundError: 下载失败。
    """
    if model_path.exists():
        return model_path

    model_path.parent.mkdir(parents=True, exist_ok=True)
    logger.info("Downloading hand landmarker model to %s", model_path)
    try:
        urlretrieve(HAND_LANDMARKER_URL, model_path)
    except OSError as exc:
        raise FileNotFoundError(
            f"Hand model not found and download failed: {model_path}"
        ) from exc
    return model_path


def create_hand_landmarker(
    model_path: Path,
    num_hands: int = 2,
    min_detection_confidence: float = 0.6,
    min_presence_confidence: float = 0.6,
    min_tracking_confidence: float = 0.6,
) -> "mp.tasks.vision.HandLandmarker":
    """创建 MediaPipe Hand Landmarker 实例（VIDEO 模式）。

    参数:
        model_path: 模型路径（.task）。
        num_hands: 最大检测手数量（>=1）。
        min_detection_confidence: 检测阈值（0-1）。
        min_presence_confidence: 关键点存在阈值（0-1）。
        min_tracking_confidence: 追踪阈值（0-1）。

    返回:
        HandLandmarker: 任务实例。
    """
    BaseOptions = mp.tasks.BaseOptions
    HandLandmarker = mp.tasks.vision.HandLandmarker
    HandLandmarkerOptions = mp.tasks.vision.HandLandmarkerOptions
    VisionRunningMode = mp.tasks.vision.RunningMode

    options = HandLandmarkerOptions(
        base_options=BaseOptions(model_asset_path=str(model_path)),
        running_mode=VisionRunningMode.VIDEO,
        num_hands=max(1, int(num_hands)),
        min_hand_detection_confidence=float(min_detection_confidence),
        min_hand_presence_confidence=float(min_presence_confidence),
        min_tracking_confidence=float(min_tracking_confidence),
    )
    return HandLandmarker.create_from_options(options)


def result_to_raw_hands(result: Any) -> list[RawHand]:
    """将 HandLandmarkerResult 转换为 RawHand 列表（保持检测器顺序）。

    参数:
        result: 具有 hand_landmarks / handedness 属性的检测结果。

    返回:
        list[RawHand]: 每只手的归一化关键点与左右手标签。
    """
    hands: list[RawHand] = []
    if result is None or not result.hand_landmarks:
        return hands

    for hand_idx, landmarks in enumerate(result.hand_landmarks):
        handedness = "unknown"
        if result.handedness and hand_idx < len(result.handedness):
            if result.handedness[hand_idx]:
                handedness = result.handedness[hand_idx][0].category_name

        points = [
            (float(lm.x), float(lm.y), float(lm.z) if lm.z is not None else 0.0)
            for lm in landmarks
        ]
        hands.append(RawHand(handedness=handedness, landmarks=points))

    return hands


def detect_hands(
    landmarker: "mp.tasks.vision.HandLandmarker",
    frame_bgr: np.ndarray,
    timestamp_ms: int,
) -> list[RawHand]:
    """在当前帧执行手部关键点检测。

    参数:
        landmarker: HandLandmarker 实例（VIDEO 模式）。
        frame_bgr: OpenCV BGR 图像。
        timestamp_ms: 视频时间戳（毫秒，需单调递增）。

    返回:
        list[RawHand]: 多手关键点结果（归一化坐标）。

    异常:
        RuntimeError: 检测器无法处理当前帧。
    """
    if frame_bgr is None or frame_bgr.size == 0:
        raise RuntimeError("Empty frame passed to hand detector")

    frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
    mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=frame_rgb)

    try:
        result = landmarker.detect_for_video(mp_image, timestamp_ms)
    except (RuntimeError, ValueError) as exc:
        raise RuntimeError(f"Hand detection failed at {timestamp_ms} ms: {exc}") from exc

    return result_to_raw_hands(result)
