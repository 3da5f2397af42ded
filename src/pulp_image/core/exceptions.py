"""项目内使用的自定义异常定义。

所有异常都带有 ``kind`` 标签，调度层依据 ``is_skip`` 区分“跳过”与“失败”，
不依赖异常消息文本。
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class PulpImageError(Exception):
    """基础异常类型。"""

    kind = "error"
    is_skip = False
    friendly_text = "处理图片时发生未知错误。"

    def __init__(self, message: str, path: Optional[Path] = None) -> None:
        super().__init__(message)
        self.path = path

    def friendly_message(self) -> str:
        """返回面向浏览器界面的、无技术术语的说明文字。"""

        return self.friendly_text


class InvalidConfigurationError(PulpImageError):
    """配置不合法时抛出。"""

    kind = "invalid-config"

    def friendly_message(self) -> str:
        return str(self)


class InputNotFoundError(PulpImageError):
    """输入路径不存在。"""

    kind = "input-not-found"
    friendly_text = "找不到该文件。"


class InvalidInputTypeError(PulpImageError):
    """输入既不是普通文件也不是目录。"""

    kind = "invalid-input-type"
    friendly_text = "输入必须是文件或文件夹。"


class DirectoryReadError(PulpImageError):
    """无法读取目录内容。"""

    kind = "directory-read"
    friendly_text = "无法读取该文件夹。"


class UnsupportedFormatError(PulpImageError):
    """请求的输出格式或源格式不受支持。"""

    kind = "unsupported-format"
    friendly_text = "不支持该图片格式。"

    def __init__(self, message: str, path: Optional[Path] = None, fmt: Optional[str] = None) -> None:
        super().__init__(message, path)
        self.format = fmt


class UnsupportedTransparencyError(PulpImageError):
    """源图含透明通道而目标格式不支持透明，且 alpha 模式为 error。"""

    kind = "unsupported-transparency"
    friendly_text = "图片含有透明区域，但所选格式不支持透明。请改用“填充背景色”或选择 PNG/WebP/AVIF。"

    def __init__(self, message: str, path: Optional[Path] = None, fmt: Optional[str] = None) -> None:
        super().__init__(message, path)
        self.format = fmt


class ImageLoadingError(PulpImageError):
    """图片加载失败。"""

    kind = "load-failure"
    friendly_text = "无法读取该图片，文件可能已损坏或不是有效的图片。"


class ImageWriteError(PulpImageError):
    """输出写入失败。"""

    kind = "write-failure"
    friendly_text = "无法保存处理后的图片，请检查输出文件夹是否可写。"


class SamePathError(PulpImageError):
    """输入与输出路径相同且未允许覆盖。"""

    kind = "same-path"
    is_skip = True
    friendly_text = "输出文件与原文件相同，已跳过（如需原地处理请开启覆盖）。"


class OutputExistsError(PulpImageError):
    """输出文件已存在且未允许覆盖。"""

    kind = "output-exists"
    is_skip = True
    friendly_text = "输出文件已存在，已跳过（如需替换请开启覆盖）。"

    def __init__(self, message: str, path: Optional[Path] = None, output_path: Optional[Path] = None) -> None:
        super().__init__(message, path)
        self.output_path = output_path


FRIENDLY_MESSAGES = {
    cls.kind: cls.friendly_text
    for cls in (
        InputNotFoundError,
        InvalidInputTypeError,
        DirectoryReadError,
        UnsupportedFormatError,
        UnsupportedTransparencyError,
        ImageLoadingError,
        ImageWriteError,
        SamePathError,
        OutputExistsError,
    )
}


def friendly_message_for(kind: str) -> str:
    """根据异常标签返回界面提示文字。"""

    return FRIENDLY_MESSAGES.get(kind, PulpImageError.friendly_text)
