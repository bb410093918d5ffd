from __future__ import annotations

"""多手帧组装：将检测器单帧输出整理为有序、带时间戳的 HandFrameRecord 列表。

处理规则：
    - 保持检测器给出的手顺序，不做跨帧身份追踪；
    - 关键点数量不是 21 的手直接跳过（不补零）；
    - 单手几何异常只影响该手，不影响同帧其他手；
    - 除检测器自身故障外，不因数据形状问题抛出异常。
"""

import logging
import time
from collections.abc import Mapping
from typing import Any, Callable, Iterable

import numpy as np

from ..types import HandFrameRecord, Landmark, RawHand
from .angles import LandmarkGeometryError, extract_hand_metrics
from .hand_skeleton import LANDMARK_COUNT

logger = logging.getLogger(__name__)

# annotate(record, hand_index)：叠加绘制等副作用回调
AnnotateFn = Callable[[HandFrameRecord, int], None]
# on_fault(hand_index, exc)：单手几何异常上报回调
FaultFn = Callable[[int, Exception], None]

_HANDEDNESS = {"left": "Left", "right": "Right"}


def _to_float(value: Any) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError, OverflowError):
        return None


def normalize_landmark(raw: Any) -> Landmark | None:
    """将单个原始关键点转换为 Landmark。

    支持带 x/y/z 属性的对象（如 MediaPipe NormalizedLandmark）、dict 以及
    长度为 2/3 的序列；缺失深度时 z 取 0，无法解析时返回 None。
    """
    if raw is None:
        return None
    if isinstance(raw, Landmark):
        return raw
    if isinstance(raw, Mapping):
        x, y, z = raw.get("x"), raw.get("y"), raw.get("z")
    elif hasattr(raw, "x") and hasattr(raw, "y"):
        x, y, z = raw.x, raw.y, getattr(raw, "z", None)
    elif isinstance(raw, (list, tuple, np.ndarray)) and len(raw) >= 2:
        x, y = raw[0], raw[1]
        z = raw[2] if len(raw) >= 3 else None
    else:
        return None

    fx, fy = _to_float(x), _to_float(y)
    if fx is None or fy is None:
        return None
    fz = _to_float(z) if z is not None else 0.0
    return Landmark(x=fx, y=fy, z=0.0 if fz is None else fz)


def normalize_landmarks(raw_points: Iterable[Any]) -> tuple[Landmark | None, ...]:
    """批量转换关键点，保持原始顺序与槽位数量。"""
    return tuple(normalize_landmark(point) for point in raw_points)


def _read_landmarks(hand: Any) -> list[Any] | None:
    """读取单手的原始关键点列表；条目缺少 landmarks 或不可迭代时返回 None。"""
    raw = getattr(hand, "landmarks", None)
    if raw is None:
        return None
    try:
        return list(raw)
    except TypeError:
        return None


def normalize_handedness(label: str | None) -> str | None:
    """将检测器标签归一为 "Left"/"Right"，无法识别时返回 None。"""
    if not label:
        return None
    return _HANDEDNESS.get(str(label).strip().lower())


def assemble_frame(
    raw_hands: Iterable[RawHand] | None,
    timestamp: float | None = None,
    annotate: AnnotateFn | None = None,
    on_fault: FaultFn | None = None,
) -> list[HandFrameRecord]:
    """组装单帧的手部记录列表。

    参数:
        raw_hands: 检测器返回的手列表（None 视为空帧）。
        timestamp: 帧采集时间（秒），默认取当前时间；同帧所有手共用。
        annotate: 每生成一条记录后调用的绘制回调。
        on_fault: 单手几何异常时的上报回调。

    返回:
        list[HandFrameRecord]: 按检测器顺序排列的记录，可能为空列表。
    """
    if timestamp is None:
        timestamp = time.time()

    records: list[HandFrameRecord] = []
    for hand_index, hand in enumerate(raw_hands or ()):
        landmarks = _read_landmarks(hand)
        if landmarks is None:
            logger.debug("Skipping hand %d: unreadable hand entry %r", hand_index, hand)
            continue
        if len(landmarks) != LANDMARK_COUNT:
            logger.debug(
                "Skipping hand %d: expected %d landmarks, got %d",
                hand_index,
                LANDMARK_COUNT,
                len(landmarks),
            )
            continue

        label = getattr(hand, "handedness", None)
        handedness = normalize_handedness(label)
        if handedness is None:
            # 记录只输出 Left/Right，无法识别的标签按畸形单手处理
            logger.debug(
                "Skipping hand %d: handedness %r is not Left/Right (records carry only Left/Right)",
                hand_index,
                label,
            )
            continue

        points = normalize_landmarks(landmarks)
        try:
            metrics = extract_hand_metrics(points)
        except LandmarkGeometryError as exc:
            logger.warning("Skipping hand %d (%s): %s", hand_index, handedness, exc)
            if on_fault is not None:
                on_fault(hand_index, exc)
            continue

        record = HandFrameRecord(
            landmarks=points,
            finger_angles=metrics.finger_angles,
            side_bend_angles=metrics.side_bend_angles,
            finger_pair_angles=metrics.finger_pair_angles,
            handedness=handedness,
            gap=metrics.gap,
            timestamp=timestamp,
        )
        records.append(record)

        if annotate is not None:
            try:
                annotate(record, hand_index)
            except Exception:
                logger.exception("Overlay annotation failed for hand %d", hand_index)

    return records


class FrameAssembler:
    """帧组装器：绑定绘制/异常回调与时钟，按帧调用 assemble_frame。

    不保存任何跨帧状态，同一实例可在多线程中对不同帧并发调用。
    """

    def __init__(
        self,
        annotate: AnnotateFn | None = None,
        on_fault: FaultFn | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """初始化组装器。

        参数:
            annotate: 默认绘制回调（可在 process_frame 中覆盖）。
            on_fault: 单手几何异常上报回调。
            clock: 未提供时间戳时使用的时钟（秒）。
        """
        self.annotate = annotate
        self.on_fault = on_fault
        self._clock = clock

    def process_frame(
        self,
        raw_hands: Iterable[RawHand] | None,
        timestamp: float | None = None,
        annotate: AnnotateFn | None = None,
    ) -> list[HandFrameRecord]:
        """处理单帧检测结果并返回记录列表。"""
        if timestamp is None:
            timestamp = self._clock()
        return assemble_frame(
            raw_hands,
            timestamp=timestamp,
            annotate=annotate if annotate is not None else self.annotate,
            on_fault=self.on_fault,
        )
