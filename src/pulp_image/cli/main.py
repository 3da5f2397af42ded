"""命令行入口。"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

from pulp_image.core.config import ProcessingConfig, ServerConfig
from pulp_image.core.exceptions import PulpImageError
from pulp_image.core.models import JobResult, ProcessResult
from pulp_image.core.progress import ProgressUpdate
from pulp_image.core.report import write_csv_report
from pulp_image.core.stats import format_bytes
from pulp_image.core.update_check import check_for_update, format_update_message
from pulp_image.core.version import __version__
from pulp_image.processing.pipeline import run_job
from pulp_image.utils.logging import setup_logging

app = typer.Typer(help="图片缩放、格式转换与压缩工具。", no_args_is_help=True)

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)

EPILOG = """
示例：\n
  pulp-image run image.png --format webp --quality 95\n
  pulp-image run image.png --width 800 --height 600 --auto-suffix\n
  pulp-image run ./images --format webp --out ./output --verbose\n
  pulp-image run image.png --format jpg --background "#ff0000"\n
  pulp-image run ./images --rename "{name}_{index}.{ext}" --format webp\n
\n
压缩行为：PNG 始终无损；JPG 始终有损（默认质量 80）；WebP 默认质量 80、AVIF 默认质量 50，
可用 --lossless 切换为无损。缩放只改变尺寸，不影响压缩方式。
"""


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="显示版本号并退出"
    ),
) -> None:
    """pulp-image：本地图片处理工具。"""


def _print_banner() -> None:
    console.print(
        Panel.fit(f"pulp-image v{__version__}\n图片处理，简单直接", border_style="cyan"),
    )


def _fail(message: str) -> typer.Exit:
    err_console.print(f"[red]错误：{escape(message)}[/red]")
    return typer.Exit(code=1)


def _build_progress_callback(progress: Progress):
    task_id: Optional[int] = None

    def callback(update: ProgressUpdate) -> None:
        nonlocal task_id
        if update.total == 0:
            return
        if task_id is None:
            progress.console.print(f"[dim]发现 {update.total} 个图片文件，开始处理……[/dim]")
            task_id = progress.add_task("处理图片", total=update.total)
        progress.update(task_id, completed=update.completed)

    return callback


def _print_processed(result: ProcessResult, title: str = "已处理") -> None:
    console.print(f"[green]✓ {title}：{escape(str(result.output_path))}[/green]")
    meta = result.metadata
    console.print(f"[dim]  原始：{format_bytes(result.original_size)} ({meta.width}x{meta.height})[/dim]")
    console.print(f"[dim]  结果：{format_bytes(result.final_size)}[/dim]")
    console.print(f"[dim]  节省：{format_bytes(result.bytes_saved)} ({result.percent_saved}%)[/dim]")
    if result.delete_error:
        console.print(f"[yellow]  警告：删除原文件失败：{escape(result.delete_error)}[/yellow]")


def _print_details(result: JobResult, is_file: bool, verbose: bool) -> None:
    if is_file:
        if result.processed:
            _print_processed(result.processed[0])
        elif result.skipped:
            skipped = result.skipped[0]
            console.print(f"[yellow]⚠ 已跳过：{escape(str(skipped.file_path))}[/yellow]")
            console.print(f"[dim]  原因：{escape(skipped.reason)}[/dim]")
        elif result.failed:
            err_console.print(f"[red]✗ 错误：{escape(result.failed[0].error)}[/red]")
        return

    if verbose:
        for item in result.processed:
            _print_processed(item, title="完成")
        for record in result.skipped:
            console.print(f"[yellow]⚠ 已跳过：{escape(str(record.file_path))}[/yellow]")
            console.print(f"[dim]  原因：{escape(record.reason)}[/dim]")
    for record in result.failed:
        err_console.print(f"[red]✗ 失败：{escape(str(record.file_path))}[/red]")
        if verbose:
            err_console.print(f"[dim]  错误：{escape(record.error)}[/dim]")


def _print_summary(result: JobResult, verbose: bool) -> None:
    totals = result.totals
    console.rule("[bold cyan]处理汇总")
    if totals.processed_count:
        console.print(f"[green]✓ 已处理：{totals.processed_count} 个文件[/green]")
        console.print(f"[dim]  原始总大小：{format_bytes(totals.total_original)}[/dim]")
        console.print(f"[dim]  处理后大小：{format_bytes(totals.total_final)}[/dim]")
        console.print(f"[dim]  共节省：    {format_bytes(totals.total_saved)} ({totals.percent_saved}%)[/dim]")
    if totals.skipped_count:
        console.print(f"[yellow]⚠ 已跳过：{totals.skipped_count} 个文件[/yellow]")
        if verbose:
            for record in result.skipped:
                console.print(f"[dim]  - {escape(str(record.file_path))}: {escape(record.reason)}[/dim]")
    if totals.failed_count:
        console.print(f"[red]✗ 失败：{totals.failed_count} 个文件[/red]")
        if verbose:
            for record in result.failed:
                console.print(f"[dim]  - {escape(str(record.file_path))}: {escape(record.error)}[/dim]")
    console.rule(style="cyan")


@app.command("run", epilog=EPILOG)
def run_cli(  # noqa: PLR0913
    source: Path = typer.Argument(..., help="输入图片文件或目录"),
    width: Optional[int] = typer.Option(None, "--width", "-w", min=1, help="输出宽度（像素）"),
    height: Optional[int] = typer.Option(None, "--height", "-h", min=1, help="输出高度（像素）"),
    output_format: Optional[str] = typer.Option(None, "--format", "-f", help="输出格式：png、jpg、webp、avif"),
    out: Path = typer.Option(Path("./dist"), "--out", "-o", help="输出目录（不存在时自动创建，原图保持不变）"),
    rename: Optional[str] = typer.Option(
        None, "--rename", help="重命名模板，支持 {name}、{ext}、{index}，优先于后缀选项"
    ),
    suffix: Optional[str] = typer.Option(None, "--suffix", help="追加在扩展名前的自定义后缀"),
    auto_suffix: bool = typer.Option(False, "--auto-suffix", help="根据尺寸自动添加后缀，如 -800x600"),
    quality: Optional[int] = typer.Option(
        None, "--quality", min=1, max=100, help="有损格式的质量 (1-100)，默认 JPG=80、WebP=80、AVIF=50"
    ),
    lossless: bool = typer.Option(
        False, "--lossless", help="在支持的格式（PNG、WebP、AVIF）上使用无损压缩；AVIF 为近无损（质量 100、4:4:4）"
    ),
    background: str = typer.Option("#ffffff", "--background", help="透明区域填充色 (HEX)"),
    alpha_mode: str = typer.Option("flatten", "--alpha-mode", help="透明处理方式：flatten 或 error"),
    overwrite: bool = typer.Option(False, "--overwrite", help="覆盖已存在的输出文件"),
    delete_original: bool = typer.Option(False, "--delete-original", help="处理成功后删除原文件"),
    report: Optional[Path] = typer.Option(None, "--report", help="将处理结果写入 CSV 报告"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="输出详细信息"),
) -> None:
    """处理单张图片或整个目录。"""

    setup_logging(logging.DEBUG if verbose else logging.WARNING)
    _print_banner()

    input_path = source.expanduser().resolve()
    if not input_path.exists():
        raise _fail(f"输入路径不存在: {input_path}")
    is_file = input_path.is_file()
    if not is_file and not input_path.is_dir():
        raise _fail(f"输入必须是文件或目录: {input_path}")

    try:
        config = ProcessingConfig.from_options(
            out=out,
            width=width,
            height=height,
            format=output_format,
            rename_pattern=rename,
            suffix=suffix,
            auto_suffix=auto_suffix,
            quality=quality,
            lossless=lossless,
            background=background,
            alpha_mode=alpha_mode,
            overwrite=overwrite,
            delete_original=delete_original,
            input_path=input_path,
        )
    except PulpImageError as exc:
        raise _fail(str(exc)) from exc

    if verbose:
        console.print(f"[dim]处理中：{escape(str(input_path))}[/dim]")

    try:
        if is_file:
            result = run_job(input_path, config)
        else:
            progress = Progress(
                SpinnerColumn(),
                TextColumn("[bold blue]{task.description}"),
                BarColumn(),
                TextColumn("{task.completed}/{task.total}"),
                TimeElapsedColumn(),
                console=console,
                transient=True,
            )
            with progress:
                result = run_job(input_path, config, progress_callback=_build_progress_callback(progress))
    except PulpImageError as exc:
        if verbose:
            err_console.print_exception()
        raise _fail(str(exc)) from exc

    if not is_file and result.is_empty():
        console.print(f"[yellow]目录中没有受支持的图片文件：{escape(str(input_path))}[/yellow]")
        raise typer.Exit(code=0)

    _print_details(result, is_file, verbose)

    if not is_file or result.skipped or result.failed:
        _print_summary(result, verbose)

    if report:
        report_path = write_csv_report(result, report.expanduser())
        console.print(f"[dim]报告文件：{escape(str(report_path))}[/dim]")

    if is_file and result.failed:
        raise typer.Exit(code=1)


@app.command("ui")
def ui_cli(
    port: int = typer.Option(3000, "--port", "-p", help="服务端口"),
    host: str = typer.Option("localhost", "--host", help="监听地址"),
    open_browser: bool = typer.Option(True, "--open/--no-open", help="启动后自动打开浏览器"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="输出详细日志"),
) -> None:
    """启动本地浏览器界面。"""

    setup_logging(logging.DEBUG if verbose else logging.INFO)
    # 延迟导入，命令行模式不需要加载 Flask
    from pulp_image.ui.server import start_ui_server

    try:
        server_config = ServerConfig(port=port, host=host, open_browser=open_browser)
    except PulpImageError as exc:
        raise _fail(str(exc)) from exc

    console.print(f"[cyan]界面服务地址：http://{host}:{port}[/cyan]")
    console.print("[dim]按 Ctrl+C 停止[/dim]")
    try:
        start_ui_server(server_config)
    except PulpImageError as exc:
        raise _fail(str(exc)) from exc
    except KeyboardInterrupt:
        console.print("\n[dim]服务已停止[/dim]")


@app.command("check-update")
def check_update_cli(
    force: bool = typer.Option(False, "--force", help="忽略缓存，强制联网检查"),
) -> None:
    """检查是否有新版本。"""

    info = check_for_update(__version__, force=force)
    message = format_update_message(info)
    if message:
        console.print(f"[yellow]{escape(message)}[/yellow]")
    elif info.error:
        console.print("[dim]无法获取最新版本信息。[/dim]")
    else:
        console.print(f"[green]已是最新版本 ({__version__})[/green]")


if __name__ == "__main__":
    app()
