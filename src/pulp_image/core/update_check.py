"""新版本检查与结果缓存。

缓存与时钟均通过参数注入，便于测试；网络请求失败时静默返回“无更新”。
"""

from __future__ import annotations

import json
import logging
import re
import time
import urllib.error
import urllib.request
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional

from pulp_image.core.version import PACKAGE_NAME

LOGGER = logging.getLogger(__name__)

PYPI_URL = f"https://pypi.org/pypi/{PACKAGE_NAME}/json"
CACHE_TTL_SECONDS = 24 * 60 * 60
DEFAULT_CACHE_PATH = Path.home() / ".config" / PACKAGE_NAME / "update-cache.json"
LEADING_DIGITS_RE = re.compile(r"\d+")

Clock = Callable[[], float]
LatestFetcher = Callable[[], Optional[str]]


@dataclass(slots=True)
class UpdateInfo:
    """一次检查的结果。"""

    update_available: bool
    current_version: str
    latest_version: Optional[str]
    cached: bool = False
    error: bool = False


class UpdateCache:
    """以 JSON 文件保存最近一次检查结果，24 小时内有效。"""

    def __init__(self, path: Path = DEFAULT_CACHE_PATH, clock: Clock = time.time, ttl: float = CACHE_TTL_SECONDS) -> None:
        self.path = Path(path)
        self.clock = clock
        self.ttl = ttl

    def read(self) -> Optional[dict[str, Any]]:
        """返回未过期的缓存内容；缺失、损坏或过期时返回 None。"""

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as exc:
            LOGGER.debug("读取更新缓存失败 %s: %s", self.path, exc)
            return None

        timestamp = data.get("timestamp") if isinstance(data, dict) else None
        if not isinstance(timestamp, (int, float)):
            return None
        if self.clock() - timestamp >= self.ttl:
            return None
        return data

    def write(self, info: UpdateInfo) -> None:
        payload = {
            "updateAvailable": info.update_available,
            "currentVersion": info.current_version,
            "latestVersion": info.latest_version,
            "timestamp": self.clock(),
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as exc:
            # 缓存写入失败不影响检查结果
            LOGGER.debug("写入更新缓存失败 %s: %s", self.path, exc)


def _parse_version(value: str) -> list[int]:
    parts = []
    for piece in value.strip().lstrip("v").split(".")[:3]:
        match = LEADING_DIGITS_RE.match(piece)
        parts.append(int(match.group()) if match else 0)
    while len(parts) < 3:
        parts.append(0)
    return parts


def is_newer_version(current: str, latest: str) -> bool:
    """按主/次/修订三段比较，latest 更新时返回 True。"""

    return _parse_version(latest) > _parse_version(current)


def fetch_latest_version(timeout: float = 3.0) -> Optional[str]:
    """从 PyPI 查询最新版本号，任何网络或解析错误都返回 None。"""

    request = urllib.request.Request(PYPI_URL, headers={"Accept": "application/json"})
    try:
        with urllib.request.urlopen(request, timeout=timeout) as response:
            data = json.loads(response.read().decode("utf-8"))
    except (urllib.error.URLError, OSError, ValueError) as exc:
        LOGGER.debug("查询最新版本失败: %s", exc)
        return None
    return (data.get("info") or {}).get("version") or None


def check_for_update(
    current_version: str,
    cache: Optional[UpdateCache] = None,
    fetch_latest: LatestFetcher = fetch_latest_version,
    force: bool = False,
) -> UpdateInfo:
    """检查是否有新版本；未强制时优先使用与当前版本一致的缓存。"""

    cache = cache or UpdateCache()
    if not force:
        cached = cache.read()
        if cached and cached.get("currentVersion") == current_version:
            return UpdateInfo(
                update_available=bool(cached.get("updateAvailable")),
                current_version=current_version,
                latest_version=cached.get("latestVersion"),
                cached=True,
            )

    latest = fetch_latest()
    if not latest:
        return UpdateInfo(update_available=False, current_version=current_version, latest_version=None, error=True)

    info = UpdateInfo(
        update_available=is_newer_version(current_version, latest),
        current_version=current_version,
        latest_version=latest,
    )
    cache.write(info)
    return info


def format_update_message(info: UpdateInfo) -> Optional[str]:
    if not info.update_available or not info.latest_version:
        return None
    return f"发现新版本：{info.current_version} → {info.latest_version}\n运行：pip install -U {PACKAGE_NAME}"
