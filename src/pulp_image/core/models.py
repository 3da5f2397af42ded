"""核心数据模型定义。"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional


@dataclass(frozen=True, slots=True)
class ImageMetadata:
    """源图片的基础信息。"""

    width: int
    height: int
    format: Optional[str]
    has_alpha: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "width": self.width,
            "height": self.height,
            "format": self.format,
            "hasAlpha": self.has_alpha,
        }


@dataclass(frozen=True, slots=True)
class ProcessResult:
    """单个文件成功处理后的结果。"""

    input_path: Path
    output_path: Path
    original_size: int
    final_size: int
    bytes_saved: int
    percent_saved: float
    metadata: ImageMetadata
    delete_error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "inputPath": str(self.input_path),
            "outputPath": str(self.output_path),
            "originalSize": self.original_size,
            "finalSize": self.final_size,
            "bytesSaved": self.bytes_saved,
            "percentSaved": self.percent_saved,
            "metadata": self.metadata.to_dict(),
            "deleteError": self.delete_error,
        }


@dataclass(frozen=True, slots=True)
class SkipRecord:
    """因安全检查而有意跳过的文件。"""

    file_path: Path
    reason: str
    kind: str = "skip"

    def to_dict(self) -> dict[str, Any]:
        return {"filePath": str(self.file_path), "reason": self.reason, "kind": self.kind}


@dataclass(frozen=True, slots=True)
class FailureRecord:
    """处理失败的文件。"""

    file_path: Path
    error: str
    kind: str = "error"

    def to_dict(self) -> dict[str, Any]:
        return {"filePath": str(self.file_path), "error": self.error, "kind": self.kind}


@dataclass(frozen=True, slots=True)
class Totals:
    """由已处理结果推导的汇总统计。"""

    total_original: int = 0
    total_final: int = 0
    total_saved: int = 0
    percent_saved: float = 0.0
    processed_count: int = 0
    skipped_count: int = 0
    failed_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalOriginal": self.total_original,
            "totalFinal": self.total_final,
            "totalSaved": self.total_saved,
            "percentSaved": self.percent_saved,
            "processedCount": self.processed_count,
            "skippedCount": self.skipped_count,
            "failedCount": self.failed_count,
        }


@dataclass(slots=True)
class JobResult:
    """一次运行的结构化产出，不含任何展示逻辑。"""

    processed: list[ProcessResult] = field(default_factory=list)
    skipped: list[SkipRecord] = field(default_factory=list)
    failed: list[FailureRecord] = field(default_factory=list)
    totals: Totals = field(default_factory=Totals)

    def is_empty(self) -> bool:
        return not (self.processed or self.skipped or self.failed)

    def to_dict(self) -> dict[str, Any]:
        return {
            "processed": [item.to_dict() for item in self.processed],
            "skipped": [item.to_dict() for item in self.skipped],
            "failed": [item.to_dict() for item in self.failed],
            "totals": self.totals.to_dict(),
        }
