"""输出目录相关的路径工具（供浏览器界面使用）。"""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"


def expand_path(value: str | Path) -> Path:
    """展开 ``~`` 并转换为绝对路径。"""

    return Path(value).expanduser().resolve()


def default_output_dir(results_root: Path, timestamp: Optional[str] = None) -> Path:
    """默认输出目录：``<results_root>/<时间戳>``。"""

    stamp = _safe_timestamp(timestamp) or datetime.now().strftime(TIMESTAMP_FORMAT)
    return expand_path(results_root) / stamp


def _safe_timestamp(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    cleaned = "".join(ch for ch in value if ch.isalnum() or ch in "-_")
    return cleaned or None


def describe_output_path(value: str | Path) -> dict[str, Any]:
    """检查输出目录状态：是否存在、是否为目录、是否可以创建。"""

    path = expand_path(value)
    exists = path.exists()
    is_dir = path.is_dir()
    if exists:
        will_create = False
        writable = is_dir and os.access(path, os.W_OK)
    else:
        parent = _nearest_existing_parent(path)
        writable = parent is not None and parent.is_dir() and os.access(parent, os.W_OK)
        will_create = writable
    return {
        "path": str(path),
        "exists": exists,
        "isDirectory": is_dir,
        "willCreate": will_create,
        "writable": writable,
    }


def _nearest_existing_parent(path: Path) -> Optional[Path]:
    for parent in path.parents:
        if parent.exists():
            return parent
    return None
