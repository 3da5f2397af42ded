"""版本号。"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

PACKAGE_NAME = "pulp-image"

try:
    __version__ = version(PACKAGE_NAME)
except PackageNotFoundError:
    # 未安装时（直接从源码目录运行）
    __version__ = "0.1.0"
