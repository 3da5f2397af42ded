"""输入/输出格式策略表。"""

from __future__ import annotations

from typing import Optional

SUPPORTED_INPUT_FORMATS = ("png", "jpg", "jpeg", "webp", "avif")
SUPPORTED_OUTPUT_FORMATS = ("png", "jpg", "webp", "avif")

FORMATS_WITH_TRANSPARENCY = frozenset({"png", "webp", "avif"})
FORMATS_SUPPORTING_LOSSLESS = frozenset({"png", "webp", "avif"})

# PNG 始终无损，不接受 quality 参数。
DEFAULT_QUALITY: dict[str, Optional[int]] = {
    "jpg": 80,
    "webp": 80,
    "avif": 50,
    "png": None,
}

PILLOW_FORMATS = {
    "png": "PNG",
    "jpg": "JPEG",
    "webp": "WEBP",
    "avif": "AVIF",
}


def normalize_format(value: Optional[str]) -> Optional[str]:
    """统一格式名称：小写、去掉前导点，jpeg 归并为 jpg。

    同时接受 Pillow 的格式名（如 ``JPEG``）。
    """

    if not value:
        return None
    normalized = value.strip().lower().lstrip(".")
    # Pillow 把带多帧信息的相机 JPEG 识别为 MPO
    if normalized in {"jpeg", "mpo"}:
        return "jpg"
    return normalized or None


def is_valid_output_format(value: Optional[str]) -> bool:
    return normalize_format(value) in SUPPORTED_OUTPUT_FORMATS


def is_supported_input_extension(extension: str) -> bool:
    """判断扩展名（可带点，大小写不敏感）是否为支持的输入格式。"""

    return extension.lower().lstrip(".") in SUPPORTED_INPUT_FORMATS


def get_default_quality(value: Optional[str]) -> Optional[int]:
    fmt = normalize_format(value)
    if fmt is None:
        return None
    return DEFAULT_QUALITY.get(fmt)


def supports_transparency(value: Optional[str]) -> bool:
    return normalize_format(value) in FORMATS_WITH_TRANSPARENCY


def supports_lossless(value: Optional[str]) -> bool:
    return normalize_format(value) in FORMATS_SUPPORTING_LOSSLESS


def pillow_format(value: Optional[str]) -> Optional[str]:
    """返回 Pillow 保存时使用的编码器名称。"""

    return PILLOW_FORMATS.get(normalize_format(value) or "")
