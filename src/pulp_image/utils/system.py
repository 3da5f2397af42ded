"""操作系统相关的辅助功能。"""

from __future__ import annotations

import logging
import os
import subprocess
import sys
from pathlib import Path

LOGGER = logging.getLogger(__name__)


def open_folder(path: Path) -> bool:
    """用系统文件管理器打开目录，成功返回 True。"""

    path = Path(path)
    if not path.is_dir():
        return False

    try:
        if sys.platform.startswith("win"):
            os.startfile(str(path))  # type: ignore[attr-defined]
        elif sys.platform == "darwin":
            subprocess.run(["open", str(path)], check=True)
        else:
            subprocess.run(["xdg-open", str(path)], check=True)
    except (OSError, subprocess.CalledProcessError) as exc:
        LOGGER.warning("无法打开目录 %s: %s", path, exc)
        return False
    return True
