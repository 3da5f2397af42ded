"""尺寸调整、透明填充与编码参数。"""

from __future__ import annotations

import logging
from typing import Any, Optional, Tuple

from PIL import Image

from pulp_image.core.formats import normalize_format
from pulp_image.processing.image_loader import has_alpha

LOGGER = logging.getLogger(__name__)


def compute_target_size(
    size: Tuple[int, int], width: Optional[int], height: Optional[int]
) -> Tuple[int, int]:
    """计算目标尺寸。

    宽高都给定时精确缩放到该尺寸（不保持比例）；只给一个时按比例推算另一边。
    """

    src_w, src_h = size
    if width and height:
        return width, height
    if width:
        return width, max(1, round(src_h * width / src_w))
    if height:
        return max(1, round(src_w * height / src_h)), height
    return src_w, src_h


def resize_image(image: Image.Image, width: Optional[int], height: Optional[int]) -> Image.Image:
    target = compute_target_size(image.size, width, height)
    if target == image.size:
        return image
    LOGGER.debug("缩放 %sx%s -> %sx%s", image.width, image.height, *target)
    return image.resize(target, Image.LANCZOS)


def flatten_alpha(image: Image.Image, background: Tuple[int, int, int]) -> Image.Image:
    """将透明图像合成到不透明背景色上，返回 RGB 图像。"""

    rgba = image.convert("RGBA")
    canvas = Image.new("RGB", rgba.size, background)
    canvas.paste(rgba, mask=rgba.split()[-1])
    return canvas


def prepare_for_format(image: Image.Image, fmt: str) -> Image.Image:
    """把像素模式转换为目标编码器可接受的模式。"""

    fmt = normalize_format(fmt) or ""
    if fmt == "jpg":
        if image.mode in {"RGB", "L"}:
            return image
        return image.convert("RGB")

    if image.mode in {"RGB", "RGBA", "L", "LA"}:
        return image
    if fmt == "png" and image.mode in {"P", "1", "I;16", "I"}:
        return image
    return image.convert("RGBA" if has_alpha(image) else "RGB")


def build_save_options(fmt: str, quality: Optional[int], lossless: bool) -> dict[str, Any]:
    """把已确定的质量/无损模式映射为 Pillow 保存参数。"""

    fmt = normalize_format(fmt) or ""
    if fmt == "png":
        return {"optimize": True}

    options: dict[str, Any] = {}
    if fmt == "jpg":
        options["optimize"] = True
    if lossless:
        if fmt == "webp":
            options["lossless"] = True
        elif fmt == "avif":
            # AVIF 编码器没有独立的 lossless 开关，只能近无损
            options.update(quality=100, subsampling="4:4:4")
        return options

    if quality is not None:
        options["quality"] = quality
    return options
