"""图片元数据读取与加载实现。"""

from __future__ import annotations

import logging
from pathlib import Path

from PIL import Image, ImageOps, UnidentifiedImageError

from pulp_image.core.exceptions import ImageLoadingError
from pulp_image.core.formats import normalize_format
from pulp_image.core.models import ImageMetadata

LOGGER = logging.getLogger(__name__)

ALPHA_MODES = {"RGBA", "LA", "PA", "RGBa", "La"}


def has_alpha(img: Image.Image) -> bool:
    """判断图像是否带透明信息（alpha 通道或调色板透明色）。"""

    if img.mode in ALPHA_MODES:
        return True
    return "transparency" in img.info


def read_metadata(path: Path) -> ImageMetadata:
    """只读取文件头，返回尺寸、格式与透明信息。"""

    try:
        with Image.open(path) as img:
            return ImageMetadata(
                width=img.width,
                height=img.height,
                format=normalize_format(img.format),
                has_alpha=has_alpha(img),
            )
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as exc:
        LOGGER.debug("无法识别图像文件 %s: %s", path, exc)
        raise ImageLoadingError(f"无法读取图像信息: {path}", path=path) from exc


def load_image(path: Path) -> Image.Image:
    """完整解码单张图片并执行 EXIF 旋转校正。

    返回值为新的 Image 对象，调用者负责关闭。
    """

    try:
        with Image.open(path) as img:
            img.load()

            # EXIF Orientation 校正
            transposed = ImageOps.exif_transpose(img)
            return transposed.copy() if transposed is img else transposed
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as exc:
        LOGGER.debug("无法加载图像文件 %s: %s", path, exc)
        raise ImageLoadingError(f"无法加载图像: {path}", path=path) from exc
