#!/usr/bin/env python3
"""清理 output/logs 与 output/snapshots 下的文件。"""

from __future__ import annotations

import argparse
from pathlib import Path
import sys

TARGETS = ("logs", "snapshots")


def parse_args() -> argparse.Namespace:
    """解析命令行参数。"""
    parser = argparse.ArgumentParser(
        description="Remove JSONL logs and PNG snapshots under output/.",
    )
    parser.add_argument(
        "--only",
        choices=TARGETS,
        default=None,
        help="Clean only one sub-directory (default: both).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List files that would be removed without deleting them.",
    )
    return parser.parse_args()


def collect_files(output_root: Path, targets: tuple[str, ...]) -> list[Path]:
    """收集待删除文件（仅一级目录下的普通文件）。"""
    files: list[Path] = []
    for name in targets:
        directory = output_root / name
        if not directory.exists():
            print(f"Directory not found, skipping: {directory}")
            continue
        files.extend(sorted(p for p in directory.iterdir() if p.is_file()))
    return files


def main() -> int:
    """脚本主入口。

    返回:
        int: 0 表示正常完成，非 0 表示存在删除失败。
    """
    args = parse_args()
    repo_root = Path(__file__).resolve().parents[1]
    targets = (args.only,) if args.only else TARGETS
    files = collect_files(repo_root / "output", targets)

    if not files:
        print("No output files to remove.")
        return 0

    if args.dry_run:
        print("Dry run: the following files would be removed:")
        for path in files:
            print(path)
        return 0

    removed = 0
    failed = 0
    for path in files:
        try:
            path.unlink()
            removed += 1
        except OSError as exc:
            failed += 1
            print(f"Failed to remove {path}: {exc}")

    print(f"Removed {removed} file(s) from: {', '.join(targets)}")
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
