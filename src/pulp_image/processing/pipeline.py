"""处理流水线：校验输入、规划任务并顺序执行单图处理。"""

from __future__ import annotations

import logging
from pathlib import Path

from pulp_image.core.config import ProcessingConfig
from pulp_image.core.exceptions import InputNotFoundError, InvalidInputTypeError, PulpImageError
from pulp_image.core.models import JobResult
from pulp_image.core.output_manager import OutputManager
from pulp_image.core.progress import ProgressCallback, emit_progress
from pulp_image.core.report import Reporter
from pulp_image.core.scanner import plan_tasks
from pulp_image.processing.processor import process_image

LOGGER = logging.getLogger(__name__)


def run_job(input_path: Path, config: ProcessingConfig, progress_callback: ProgressCallback = None) -> JobResult:
    """处理入口，供 CLI 与 HTTP 接口共用。

    单个文件或目录均可；目录模式下逐个顺序处理，单个文件失败不会中断批次。
    本函数不输出任何终端信息，只返回结构化结果。
    """

    resolved = Path(input_path).expanduser().resolve()
    if not resolved.exists():
        raise InputNotFoundError(f"输入路径不存在: {resolved}", path=resolved)
    if not resolved.is_file() and not resolved.is_dir():
        raise InvalidInputTypeError(f"输入必须是文件或目录: {resolved}", path=resolved)

    if resolved.is_file():
        tasks = [resolved]
    else:
        LOGGER.info("开始扫描输入目录：%s", resolved)
        tasks = plan_tasks(resolved)
        LOGGER.info("发现 %d 个候选图片文件", len(tasks))
        if not tasks:
            emit_progress(progress_callback, 0, 0, "没有需要处理的图片", status="done")
            return JobResult()

    reporter = Reporter()
    output_manager = OutputManager()
    total = len(tasks)

    for index, task in enumerate(tasks):
        status = _run_task(task, config, index, reporter, output_manager)
        emit_progress(progress_callback, index + 1, total, task.name, status=status)

    emit_progress(progress_callback, total, total, "处理完成", status="done")

    result = reporter.to_result()
    LOGGER.info(
        "处理完成：成功 %d，跳过 %d，失败 %d",
        result.totals.processed_count,
        result.totals.skipped_count,
        result.totals.failed_count,
    )
    return result


def _run_task(
    task: Path,
    config: ProcessingConfig,
    index: int,
    reporter: Reporter,
    output_manager: OutputManager,
) -> str:
    try:
        result = process_image(task, config, index, output_manager=output_manager)
    except PulpImageError as exc:
        reporter.record_error(task, exc)
        if exc.is_skip:
            LOGGER.info("跳过 %s：%s", task.name, exc)
            return "skipped"
        LOGGER.error("处理失败 %s：%s", task.name, exc)
        return "failed"
    except OSError as exc:
        # stat/unlink 等文件系统问题同样只记为单个文件失败
        LOGGER.error("处理失败 %s：%s", task.name, exc)
        reporter.record_failed(task, exc)
        return "failed"

    reporter.record_processed(result)
    return "processed"
