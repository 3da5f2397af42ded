"""文件体积统计工具。"""

from __future__ import annotations

from typing import NamedTuple

SIZE_UNITS = ("B", "KB", "MB", "GB")


class SizeStats(NamedTuple):
    original_size: int
    final_size: int
    bytes_saved: int
    percent_saved: float


def percent_of(saved: int, original: int) -> float:
    """节省比例（百分比，保留两位小数）；原始大小为 0 时返回 0.0。"""

    if original <= 0:
        return 0.0
    return round(saved / original * 100, 2)


def calculate_stats(original_size: int, final_size: int) -> SizeStats:
    bytes_saved = original_size - final_size
    return SizeStats(
        original_size=original_size,
        final_size=final_size,
        bytes_saved=bytes_saved,
        percent_saved=percent_of(bytes_saved, original_size),
    )


def format_bytes(size: int) -> str:
    """将字节数格式化为便于阅读的字符串，例如 ``1.5 KB``。"""

    if size == 0:
        return "0 B"

    value = float(size)
    index = 0
    while abs(value) >= 1024 and index < len(SIZE_UNITS) - 1:
        value /= 1024
        index += 1
    # 去掉多余的小数位：1.50 -> 1.5，2.00 -> 2
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {SIZE_UNITS[index]}"
