"""处理任务的配置模型。"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from pulp_image.core.exceptions import InvalidConfigurationError
from pulp_image.core.formats import SUPPORTED_OUTPUT_FORMATS, normalize_format

ALPHA_MODES = ("flatten", "error")
DEFAULT_OUTPUT_DIR = Path("./dist")
DEFAULT_BACKGROUND = "#ffffff"


@dataclass(frozen=True, slots=True)
class SuffixNaming:
    """后缀拼接命名：``{name}-{auto}-{custom}{ext}``。"""

    auto_suffix: bool = False
    custom_suffix: Optional[str] = None


@dataclass(frozen=True, slots=True)
class TemplateNaming:
    """重命名模板，支持 ``{name}``、``{ext}``、``{index}`` 占位符。"""

    pattern: str


NamingStrategy = Union[SuffixNaming, TemplateNaming]


@dataclass(frozen=True, slots=True)
class ProcessingConfig:
    """单次运行的处理配置，运行期间不可变。"""

    output_dir: Path = DEFAULT_OUTPUT_DIR
    width: Optional[int] = None
    height: Optional[int] = None
    format: Optional[str] = None
    naming: NamingStrategy = field(default_factory=SuffixNaming)
    quality: Optional[int] = None
    lossless: bool = False
    background: str = DEFAULT_BACKGROUND
    alpha_mode: str = "flatten"
    overwrite: bool = False
    delete_original: bool = False
    input_path: Optional[Path] = None

    def __post_init__(self) -> None:
        for name in ("width", "height"):
            value = getattr(self, name)
            if value is not None and value <= 0:
                raise InvalidConfigurationError(f"{name} 必须为正整数: {value}")

        if self.quality is not None and not 1 <= self.quality <= 100:
            raise InvalidConfigurationError(f"quality 必须在 1-100 之间: {self.quality}")

        if self.alpha_mode not in ALPHA_MODES:
            raise InvalidConfigurationError(f"未知的 alpha 模式: {self.alpha_mode}")

        if self.format is not None:
            normalized = normalize_format(self.format)
            if normalized not in SUPPORTED_OUTPUT_FORMATS:
                raise InvalidConfigurationError(
                    f"不支持的输出格式: {self.format}（可选 {', '.join(SUPPORTED_OUTPUT_FORMATS)}）"
                )
            object.__setattr__(self, "format", normalized)

    @classmethod
    def from_options(
        cls,
        *,
        out: Optional[str | Path] = None,
        width: Optional[int] = None,
        height: Optional[int] = None,
        format: Optional[str] = None,  # noqa: A002
        rename_pattern: Optional[str] = None,
        suffix: Optional[str] = None,
        auto_suffix: bool = False,
        quality: Optional[int] = None,
        lossless: bool = False,
        background: Optional[str] = None,
        alpha_mode: Optional[str] = None,
        overwrite: bool = False,
        delete_original: bool = False,
        input_path: Optional[str | Path] = None,
    ) -> "ProcessingConfig":
        """由扁平选项（CLI 参数或界面 JSON）构造配置。

        重命名模板非空时优先于后缀拼接。
        """

        naming: NamingStrategy
        if rename_pattern and rename_pattern.strip():
            naming = TemplateNaming(pattern=rename_pattern.strip())
        else:
            naming = SuffixNaming(auto_suffix=bool(auto_suffix), custom_suffix=suffix or None)

        return cls(
            output_dir=Path(out).expanduser() if out else DEFAULT_OUTPUT_DIR,
            width=width or None,
            height=height or None,
            format=format or None,
            naming=naming,
            quality=quality,
            lossless=bool(lossless),
            background=background or DEFAULT_BACKGROUND,
            alpha_mode=alpha_mode or "flatten",
            overwrite=bool(overwrite),
            delete_original=bool(delete_original),
            input_path=Path(input_path) if input_path else None,
        )


@dataclass(slots=True)
class ServerConfig:
    """浏览器界面服务配置。"""

    port: int = 3000
    host: str = "localhost"
    open_browser: bool = True
    static_dir: Optional[Path] = None
    results_root: Path = field(default_factory=lambda: Path.home() / "pulp-image-results")

    def __post_init__(self) -> None:
        if not isinstance(self.port, int) or not 1 <= self.port <= 65535:
            raise InvalidConfigurationError(f"端口号无效: {self.port}（应为 1-65535）")
        if not self.host:
            raise InvalidConfigurationError("host 不能为空")
