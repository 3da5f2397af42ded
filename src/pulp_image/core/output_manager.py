"""输出路径计算与写入模块。"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

from PIL import Image

from pulp_image.core.config import ProcessingConfig, TemplateNaming
from pulp_image.core.exceptions import ImageWriteError, UnsupportedFormatError
from pulp_image.core.formats import pillow_format

LOGGER = logging.getLogger(__name__)


def resolve_output_dir(config: ProcessingConfig) -> Path:
    """返回输出目录的绝对路径（不创建目录）。"""

    return Path(config.output_dir).expanduser().resolve()


def build_output_path(input_path: Path, config: ProcessingConfig, file_index: Optional[int] = None) -> Path:
    """根据命名策略计算输出路径。

    纯路径计算：不检查文件是否存在，也不创建目录。目录在真正写入前由
    :class:`OutputManager` 创建，避免全部跳过时留下空目录。
    """

    output_dir = resolve_output_dir(config)
    input_path = Path(input_path)
    name = input_path.stem
    output_ext = f".{config.format}" if config.format else input_path.suffix

    naming = config.naming
    if isinstance(naming, TemplateNaming):
        index = file_index + 1 if file_index is not None else 1
        filename = (
            naming.pattern.replace("{name}", name)
            .replace("{ext}", output_ext.lstrip("."))
            .replace("{index}", str(index))
        )
        if "." not in filename:
            filename += output_ext
        return output_dir / filename

    suffix_parts: list[str] = []
    if naming.auto_suffix:
        if config.width and config.height:
            suffix_parts.append(f"{config.width}x{config.height}")
        elif config.width:
            suffix_parts.append(f"{config.width}w")
        elif config.height:
            suffix_parts.append(f"{config.height}h")
    if naming.custom_suffix:
        suffix_parts.append(naming.custom_suffix)

    suffix = f"-{'-'.join(suffix_parts)}" if suffix_parts else ""
    return output_dir / f"{name}{suffix}{output_ext}"


class OutputManager:
    """负责一次运行中的目录创建与图像写入。

    每个不同的输出目录在一次运行中最多创建一次。
    """

    def __init__(self) -> None:
        self._ensured: set[Path] = set()

    @property
    def created_directories(self) -> frozenset[Path]:
        return frozenset(self._ensured)

    def ensure_directory(self, directory: Path) -> Path:
        """确保目录存在。"""

        directory = Path(directory)
        if directory in self._ensured:
            return directory
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ImageWriteError(f"无法创建输出目录: {directory}", path=directory) from exc
        LOGGER.debug("输出目录就绪：%s", directory)
        self._ensured.add(directory)
        return directory

    def save_image(self, image: Image.Image, destination: Path, fmt: str, options: dict[str, Any]) -> None:
        """将 PIL Image 按指定格式写入磁盘。"""

        image_format = pillow_format(fmt)
        if not image_format:
            raise UnsupportedFormatError(f"不支持的输出格式: {fmt}", path=destination, fmt=fmt)

        self.ensure_directory(destination.parent)
        try:
            image.save(destination, format=image_format, **options)
        except (OSError, KeyError, ValueError) as exc:
            # Pillow 缺少对应编码器时抛出 KeyError
            raise ImageWriteError(f"写入文件失败: {destination} ({exc})", path=destination) from exc
