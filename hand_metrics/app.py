from __future__ import annotations

"""主应用入口：手部关键点 -> 生物力学指标（弯曲角/侧弯角/指间角/间距）。

核心流程：
1. 读取摄像头帧（可选镜像）；
2. 执行 MediaPipe 手关键点检测；
3. 帧组装器逐手计算角度指标，生成有序记录，并叠加绘制；
4. 输出每帧记录（stdout + 可选 JSONL）；
5. 预览窗口：按 s 保存截图，按 q 退出。
"""

import argparse
import logging
from pathlib import Path

import cv2

from .config import (
    AppConfig,
    coerce_source,
    default_source,
    log_dir,
    resolve_path,
    timestamp,
)
from .features.frame import FrameAssembler
from .io.capture import open_capture, read_frames
from .io.output import JsonlEmitter
from .io.overlay import overlay_annotator, save_snapshot
from .vision.hand_mediapipe import create_hand_landmarker, detect_hands, ensure_hand_model

logger = logging.getLogger(__name__)

WINDOW_NAME = "Hand Metrics"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """解析命令行参数。"""
    defaults = AppConfig()
    parser = argparse.ArgumentParser(
        description="Derive finger bend/spread angles and thumb-index gap from webcam hand landmarks."
    )
    parser.add_argument(
        "--hand-model",
        default=defaults.hand_model,
        help="MediaPipe hand landmarker model path (default: models/hand_landmarker.task).",
    )
    parser.add_argument(
        "--source",
        default=None,
        help="Webcam index (e.g. 0) or device path (e.g. /dev/video0).",
    )
    parser.add_argument("--width", type=int, default=defaults.width, help="Capture width in pixels.")
    parser.add_argument("--height", type=int, default=defaults.height, help="Capture height in pixels.")
    parser.add_argument("--fps", type=float, default=defaults.fps, help="Capture FPS target (>=1).")
    parser.add_argument(
        "--mirror",
        action=argparse.BooleanOptionalAction,
        default=defaults.mirror,
        help="Flip frames horizontally for a selfie view.",
    )

    parser.add_argument(
        "--hand-num",
        type=int,
        default=defaults.hand_num,
        help="Max number of hands to detect (>=1).",
    )
    parser.add_argument(
        "--hand-det-conf",
        type=float,
        default=defaults.hand_det_conf,
        help="Hand detection confidence (0-1).",
    )
    parser.add_argument(
        "--hand-presence-conf",
        type=float,
        default=defaults.hand_presence_conf,
        help="Hand presence confidence (0-1).",
    )
    parser.add_argument(
        "--hand-track-conf",
        type=float,
        default=defaults.hand_track_conf,
        help="Hand tracking confidence (0-1).",
    )

    parser.add_argument(
        "--interval",
        type=float,
        default=defaults.interval,
        help="Output interval in seconds (0 emits every frame).",
    )
    parser.add_argument(
        "--log-path",
        default=None,
        help="Optional JSONL log path. Default: output/logs/hand_metrics_<timestamp>.jsonl",
    )
    parser.add_argument(
        "--no-log",
        action="store_true",
        help="Disable log file output (stdout still enabled).",
    )
    parser.add_argument(
        "--snapshot-dir",
        default=None,
        help="Directory for PNG snapshots saved with the 's' key. Default: output/snapshots",
    )
    parser.add_argument(
        "--no-preview",
        action="store_true",
        help="Disable the preview window.",
    )
    parser.add_argument(
        "--angle-matrix",
        action="store_true",
        help="Attach a per-hand angle matrix (label, angle, angle/180) to each JSONL record.",
    )
    parser.add_argument(
        "--log-level",
        default=defaults.log_level,
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Diagnostic log level (stderr).",
    )
    return parser.parse_args(argv)


def config_from_args(args: argparse.Namespace) -> AppConfig:
    """将 CLI 参数固化为 AppConfig 并校验。"""
    return AppConfig(
        hand_model=args.hand_model,
        source=args.source,
        width=args.width,
        height=args.height,
        fps=args.fps,
        mirror=args.mirror,
        hand_num=args.hand_num,
        hand_det_conf=args.hand_det_conf,
        hand_presence_conf=args.hand_presence_conf,
        hand_track_conf=args.hand_track_conf,
        interval=args.interval,
        log_path=args.log_path,
        no_log=args.no_log,
        snapshot_dir=args.snapshot_dir,
        no_preview=args.no_preview,
        angle_matrix=args.angle_matrix,
        log_level=args.log_level,
    ).validate()


def main(argv: list[str] | None = None) -> int:
    """主程序入口。

    返回：
        int: 0 表示正常退出。
    """
    cfg = config_from_args(parse_args(argv))
    logging.basicConfig(
        level=getattr(logging, cfg.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    source_arg = cfg.source if cfg.source is not None else default_source()
    source = coerce_source(source_arg)

    hand_model_path = ensure_hand_model(resolve_path(cfg.hand_model))
    hand_landmarker = create_hand_landmarker(
        hand_model_path,
        num_hands=cfg.hand_num,
        min_detection_confidence=cfg.hand_det_conf,
        min_presence_confidence=cfg.hand_presence_conf,
        min_tracking_confidence=cfg.hand_track_conf,
    )

    cap, backend_name = open_capture(source, width=cfg.width, height=cfg.height, fps=cfg.fps)
    if not cap:
        raise RuntimeError(f"Unable to open webcam source: {source_arg}")

    emitters = [JsonlEmitter(include_matrix=cfg.angle_matrix)]
    log_handle = None
    if not cfg.no_log:
        if cfg.log_path:
            log_path = resolve_path(cfg.log_path)
        else:
            log_path = log_dir() / f"hand_metrics_{timestamp()}.jsonl"
        log_path.parent.mkdir(parents=True, exist_ok=True)
        log_handle = log_path.open("w", encoding="utf-8")
        emitters.append(JsonlEmitter(log_handle, include_matrix=cfg.angle_matrix))
        logger.info("Writing JSONL records to %s", log_path)

    show_preview = not cfg.no_preview
    snapshots = resolve_path(cfg.snapshot_dir) if cfg.snapshot_dir else None
    assembler = FrameAssembler(
        on_fault=lambda idx, exc: logger.error("Corrupt landmarks for hand %d: %s", idx, exc),
    )

    last_emit = 0.0
    last_ts_ms = -1
    frame_index = 0

    try:
        for frame, captured_at in read_frames(cap, mirror=cfg.mirror):
            # VIDEO 模式要求时间戳严格递增。
            timestamp_ms = max(int(captured_at * 1000), last_ts_ms + 1)
            last_ts_ms = timestamp_ms
            try:
                raw_hands = detect_hands(hand_landmarker, frame, timestamp_ms)
            except RuntimeError as exc:
                logger.warning("Detector failed on frame %d: %s", frame_index, exc)
                raw_hands = []

            annotate = overlay_annotator(frame) if show_preview else None
            records = assembler.process_frame(raw_hands, timestamp=captured_at, annotate=annotate)

            # 输出节流：interval <= 0 表示每帧输出。
            if cfg.interval <= 0 or (captured_at - last_emit) >= cfg.interval:
                for emitter in emitters:
                    emitter.emit_frame(records, frame_index, captured_at)
                last_emit = captured_at

            if show_preview:
                cv2.imshow(WINDOW_NAME, frame)
                key = cv2.waitKey(1) & 0xFF
                if key == ord("q"):
                    break
                if key == ord("s"):
                    _save_snapshot(frame, snapshots)

            frame_index += 1

    except KeyboardInterrupt:
        pass
    finally:
        cap.release()
        hand_landmarker.close()
        if show_preview:
            cv2.destroyAllWindows()
        if log_handle is not None:
            log_handle.close()

    print(f"Capture ended after {frame_index} frame(s) (backend: {backend_name}).")
    return 0


def _save_snapshot(frame, directory: Path | None) -> None:
    """保存截图；失败只记录日志，不中断采集循环。"""
    try:
        path = save_snapshot(frame, directory)
    except RuntimeError as exc:
        logger.error("%s", exc)
        return
    print(f"Snapshot saved: {path}")


if __name__ == "__main__":
    raise SystemExit(main())
