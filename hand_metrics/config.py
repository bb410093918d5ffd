from __future__ import annotations

"""应用级配置与路径工具。

包含：
- 项目路径与输出路径管理（日志、截图）
- 默认摄像头来源设置
- 运行参数结构体与校验
"""

import platform
import time
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class AppConfig:
    """应用配置结构体（由 CLI 参数固化而来）。

    字段说明：
        hand_model: MediaPipe 手部模型路径（.task）。
        source: 摄像头来源（字符串形式），如 "0" 或 "/dev/video0"。
        width: 采集宽度（像素，>0）。
        height: 采集高度（像素，>0）。
        fps: 目标采集帧率（>0）。
        mirror: 是否水平翻转画面（自拍视角）。
        hand_num: 最大检测手数量（>=1）。
        hand_det_conf: 手部检测阈值，范围 [0.0, 1.0]。
        hand_presence_conf: 手部存在阈值，范围 [0.0, 1.0]。
        hand_track_conf: 手部追踪阈值，范围 [0.0, 1.0]。
        interval: 输出节流间隔（秒），0 表示每帧输出。
        log_path: JSONL 日志路径，None 表示使用默认路径。
        no_log: 是否禁用日志文件输出。
        snapshot_dir: 截图保存目录，None 表示 output/snapshots。
        no_preview: 是否禁用可视化窗口。
        angle_matrix: JSONL 中是否为每只手附带角度矩阵。
        log_level: logging 级别名称，如 "INFO"。
    """
    hand_model: str = "models/hand_landmarker.task"
    source: str | None = None
    width: int = 640
    height: int = 480
    fps: float = 30.0
    mirror: bool = True
    hand_num: int = 2
    hand_det_conf: float = 0.6
    hand_presence_conf: float = 0.6
    hand_track_conf: float = 0.6
    interval: float = 0.0
    log_path: str | None = None
    no_log: bool = False
    snapshot_dir: str | None = None
    no_preview: bool = False
    angle_matrix: bool = False
    log_level: str = "INFO"

    def validate(self) -> "AppConfig":
        """校验参数取值范围。

        返回:
            AppConfig: 自身，便于链式调用。

        异常:
            ValueError: 任一参数越界。
        """
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Frame size must be positive, got {self.width}x{self.height}")
        if self.fps <= 0:
            raise ValueError(f"FPS must be positive, got {self.fps}")
        if self.hand_num < 1:
            raise ValueError(f"hand_num must be >= 1, got {self.hand_num}")
        for name in ("hand_det_conf", "hand_presence_conf", "hand_track_conf"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be within [0, 1], got {value}")
        if self.interval < 0:
            raise ValueError(f"interval must be >= 0, got {self.interval}")
        return self


def project_root() -> Path:
    """返回项目根目录路径（hand_metrics 的上一级）。

    返回:
        Path: 项目根目录路径。
    """
    return Path(__file__).resolve().parents[1]


def models_dir() -> Path:
    """返回模型目录（models/）。"""
    return project_root() / "models"


def output_dir() -> Path:
    """返回输出目录（output/），如不存在会自动创建。

    返回:
        Path: 输出目录路径。
    """
    out = project_root() / "output"
    out.mkdir(parents=True, exist_ok=True)
    return out


def log_dir() -> Path:
    """返回日志目录（output/logs/），如不存在会自动创建。"""
    logs = output_dir() / "logs"
    logs.mkdir(parents=True, exist_ok=True)
    return logs


def snapshot_dir() -> Path:
    """返回截图目录（output/snapshots/），如不存在会自动创建。"""
    snaps = output_dir() / "snapshots"
    snaps.mkdir(parents=True, exist_ok=True)
    return snaps


def resolve_path(value: str | Path) -> Path:
    """相对路径按项目根目录解析，绝对路径原样返回。"""
    path = Path(value).expanduser()
    if path.is_absolute():
        return path
    return (project_root() / path).resolve()


def is_windows() -> bool:
    """判断当前系统是否为 Windows。"""
    return platform.system().lower() == "windows"


def default_source() -> str:
    """返回默认摄像头来源。

    Windows 使用字符串 "0"，其他系统使用 "/dev/video0"。

    返回:
        str: 摄像头来源字符串。
    """
    return "0" if is_windows() else "/dev/video0"


def coerce_source(value: str) -> int | str:
    """将来源字符串转换为 int 或保持为字符串。

    说明：
        仅当字符串为纯数字时转为 int（例如 "0" -> 0），
        否则保持原样（例如 "/dev/video0"）。
    """
    value = value.strip()
    return int(value) if value.isdigit() else value


def timestamp() -> str:
    """生成当前时间戳（YYYYmmdd_HHMMSS）。"""
    return time.strftime("%Y%m%d_%H%M%S")
