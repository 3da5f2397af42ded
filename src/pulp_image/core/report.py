"""结果汇总与报告生成工具。"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Optional

from pulp_image.core.exceptions import PulpImageError
from pulp_image.core.models import FailureRecord, JobResult, ProcessResult, SkipRecord, Totals
from pulp_image.core.stats import percent_of

HEADER = [
    "source_path",
    "output_path",
    "status",
    "original_size",
    "final_size",
    "bytes_saved",
    "percent_saved",
    "message",
]


class Reporter:
    """累积一次批处理中的成功、跳过与失败记录。"""

    def __init__(self) -> None:
        self.processed: list[ProcessResult] = []
        self.skipped: list[SkipRecord] = []
        self.failed: list[FailureRecord] = []

    def record_processed(self, result: ProcessResult) -> None:
        self.processed.append(result)

    def record_skipped(self, file_path: Path, reason: str, kind: str = "skip") -> None:
        self.skipped.append(SkipRecord(file_path=Path(file_path), reason=reason, kind=kind))

    def record_failed(self, file_path: Path, error: BaseException | str) -> None:
        kind = error.kind if isinstance(error, PulpImageError) else "error"
        message = str(error)
        if not message and isinstance(error, BaseException):
            message = type(error).__name__
        self.failed.append(FailureRecord(file_path=Path(file_path), error=message, kind=kind))

    def record_error(self, file_path: Path, error: PulpImageError) -> None:
        """按异常标签归入跳过或失败。"""

        if error.is_skip:
            self.record_skipped(file_path, str(error), kind=error.kind)
        else:
            self.record_failed(file_path, error)

    def get_totals(self) -> Totals:
        """根据已处理结果重新计算汇总数据。"""

        total_original = sum(item.original_size for item in self.processed)
        total_final = sum(item.final_size for item in self.processed)
        total_saved = total_original - total_final
        return Totals(
            total_original=total_original,
            total_final=total_final,
            total_saved=total_saved,
            percent_saved=percent_of(total_saved, total_original),
            processed_count=len(self.processed),
            skipped_count=len(self.skipped),
            failed_count=len(self.failed),
        )

    def to_result(self) -> JobResult:
        return JobResult(
            processed=list(self.processed),
            skipped=list(self.skipped),
            failed=list(self.failed),
            totals=self.get_totals(),
        )


def write_csv_report(result: JobResult, report_path: Path) -> Path:
    """将处理结果写入 CSV 报告。"""

    report_path = Path(report_path)
    report_path.parent.mkdir(parents=True, exist_ok=True)
    with report_path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(HEADER)
        for item in result.processed:
            writer.writerow(
                [
                    str(item.input_path),
                    str(item.output_path),
                    "processed",
                    item.original_size,
                    item.final_size,
                    item.bytes_saved,
                    f"{item.percent_saved:.2f}",
                    _delete_note(item.delete_error),
                ]
            )
        for record in result.skipped:
            writer.writerow([str(record.file_path), "", f"skipped:{record.kind}", "", "", "", "", record.reason])
        for record in result.failed:
            writer.writerow([str(record.file_path), "", f"failed:{record.kind}", "", "", "", "", record.error])
    return report_path


def _delete_note(delete_error: Optional[str]) -> str:
    if not delete_error:
        return ""
    return f"删除原文件失败: {delete_error}"
