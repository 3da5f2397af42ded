"""单张图片的处理单元。"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from PIL import Image

from pulp_image.core.config import ProcessingConfig
from pulp_image.core.exceptions import (
    InputNotFoundError,
    OutputExistsError,
    SamePathError,
    UnsupportedFormatError,
    UnsupportedTransparencyError,
)
from pulp_image.core.formats import (
    SUPPORTED_OUTPUT_FORMATS,
    get_default_quality,
    normalize_format,
    supports_lossless,
    supports_transparency,
)
from pulp_image.core.models import ProcessResult
from pulp_image.core.output_manager import OutputManager, build_output_path
from pulp_image.core.stats import calculate_stats
from pulp_image.processing.image_loader import load_image, read_metadata
from pulp_image.processing.transform import (
    build_save_options,
    flatten_alpha,
    prepare_for_format,
    resize_image,
)
from pulp_image.utils.colors import parse_background_color

LOGGER = logging.getLogger(__name__)


def process_image(
    input_path: Path,
    config: ProcessingConfig,
    file_index: Optional[int] = None,
    output_manager: Optional[OutputManager] = None,
) -> ProcessResult:
    """处理单张图片：缩放、转换格式、压缩并写入输出目录。

    安全检查失败时抛出 :class:`SamePathError` 或 :class:`OutputExistsError`
    （调度层视为跳过），其余问题抛出对应的 ``PulpImageError`` 子类。
    """

    source = Path(input_path).expanduser().resolve()
    if not source.exists():
        raise InputNotFoundError(f"输入文件不存在: {source}", path=source)

    original_size = source.stat().st_size
    metadata = read_metadata(source)

    if config.format:
        output_format = normalize_format(config.format)
        if output_format not in SUPPORTED_OUTPUT_FORMATS:
            raise UnsupportedFormatError(f"不支持的输出格式: {config.format}", path=source, fmt=config.format)
    else:
        output_format = metadata.format
        if output_format not in SUPPORTED_OUTPUT_FORMATS:
            raise UnsupportedFormatError(
                f"不支持的源图片格式: {metadata.format or '未知'} ({source.name})",
                path=source,
                fmt=metadata.format,
            )

    output_path = build_output_path(source, config, file_index)

    if source == output_path and not config.overwrite:
        raise SamePathError(f"输入与输出路径相同: {output_path}，如需原地处理请使用 --overwrite", path=source)

    if not config.overwrite and output_path.exists():
        raise OutputExistsError(
            f"输出文件已存在: {output_path}（使用 --overwrite 覆盖）",
            path=source,
            output_path=output_path,
        )

    flatten = False
    if metadata.has_alpha and not supports_transparency(output_format):
        if config.alpha_mode == "error":
            raise UnsupportedTransparencyError(
                f"输入图片含透明通道，但输出格式 {output_format} 不支持透明。"
                "请使用 --alpha-mode flatten 或选择支持透明的格式。",
                path=source,
                fmt=output_format,
            )
        flatten = True

    lossless = False
    if config.lossless:
        if supports_lossless(output_format):
            lossless = True
            if output_format == "avif":
                # RGB→YUV 转换后像素无法逐位还原
                LOGGER.warning("AVIF 无损模式为近无损（质量 100、4:4:4），像素可能有细微差异：%s", source.name)
        else:
            LOGGER.warning("%s 不支持无损压缩，改用质量参数：%s", output_format, source.name)
    quality = None if lossless else (config.quality or get_default_quality(output_format))

    manager = output_manager or OutputManager()
    image = load_image(source)
    try:
        transformed = _transform(image, config, output_format, flatten)
        try:
            manager.save_image(transformed, output_path, output_format, build_save_options(output_format, quality, lossless))
        finally:
            if transformed is not image:
                transformed.close()
    finally:
        image.close()

    final_size = output_path.stat().st_size
    stats = calculate_stats(original_size, final_size)

    delete_error = None
    if config.delete_original and source != output_path:
        delete_error = _delete_original(source)

    return ProcessResult(
        input_path=source,
        output_path=output_path,
        original_size=stats.original_size,
        final_size=stats.final_size,
        bytes_saved=stats.bytes_saved,
        percent_saved=stats.percent_saved,
        metadata=metadata,
        delete_error=delete_error,
    )


def _transform(image: Image.Image, config: ProcessingConfig, output_format: str, flatten: bool) -> Image.Image:
    current = image
    if config.width or config.height:
        current = resize_image(current, config.width, config.height)
    if flatten:
        flattened = flatten_alpha(current, parse_background_color(config.background))
        _close_intermediate(current, image)
        current = flattened
    prepared = prepare_for_format(current, output_format)
    if prepared is not current:
        _close_intermediate(current, image)
    return prepared


def _close_intermediate(candidate: Image.Image, original: Image.Image) -> None:
    if candidate is not original:
        candidate.close()


def _delete_original(source: Path) -> Optional[str]:
    """写入成功后删除原文件；失败只记录，不影响结果。"""

    if not source.exists():
        LOGGER.warning("原文件已不存在，跳过删除：%s", source)
        return None
    try:
        source.unlink()
    except OSError as exc:
        LOGGER.warning("删除原文件失败 %s: %s", source, exc)
        return exc.strerror or str(exc)
    LOGGER.debug("已删除原文件：%s", source)
    return None
