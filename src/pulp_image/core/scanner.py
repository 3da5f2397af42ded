"""目录扫描：列出待处理的图片文件。"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from pulp_image.core.exceptions import DirectoryReadError
from pulp_image.core.formats import is_supported_input_extension

LOGGER = logging.getLogger(__name__)


def plan_tasks(directory: Path) -> list[Path]:
    """列出目录下（不递归）扩展名受支持的普通文件。

    结果按小写文件名排序，使 ``{index}`` 编号在不同平台上保持一致。
    无法访问的条目直接忽略；目录本身无法读取时抛出 :class:`DirectoryReadError`。
    """

    resolved = Path(directory).expanduser().resolve()
    try:
        with os.scandir(resolved) as iterator:
            entries = list(iterator)
    except OSError as exc:
        raise DirectoryReadError(f"无法读取目录: {resolved} ({exc.strerror or exc})", path=resolved) from exc

    tasks: list[Path] = []
    for entry in entries:
        try:
            if not entry.is_file():
                continue
        except OSError as exc:
            LOGGER.debug("忽略无法访问的条目 %s: %s", entry.path, exc)
            continue

        if not is_supported_input_extension(Path(entry.name).suffix):
            continue
        tasks.append(resolved / entry.name)

    tasks.sort(key=lambda path: path.name.lower())
    LOGGER.debug("目录 %s 中发现 %d 个候选图片", resolved, len(tasks))
    return tasks
