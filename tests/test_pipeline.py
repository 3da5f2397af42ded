"""批处理调度：单文件/目录模式、部分失败与汇总。"""

from __future__ import annotations

import os
from pathlib import Path

import pytest
from PIL import Image

from pulp_image.core.config import ProcessingConfig, TemplateNaming
from pulp_image.core.exceptions import DirectoryReadError, InputNotFoundError, InvalidInputTypeError
from pulp_image.core.models import Totals
from pulp_image.core.progress import ProgressUpdate
from pulp_image.processing.pipeline import run_job


def _make_image(path: Path, size: tuple[int, int] = (64, 64), color: str = "blue") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", size, color).save(path)
    return path


def test_empty_directory_returns_zero_result(tmp_path: Path) -> None:
    source = tmp_path / "input"
    source.mkdir()
    (source / "notes.txt").write_text("hello")

    result = run_job(source, ProcessingConfig(output_dir=tmp_path / "out"))

    assert result.processed == []
    assert result.skipped == []
    assert result.failed == []
    assert result.totals == Totals()
    assert result.is_empty()
    assert not (tmp_path / "out").exists()


def test_batch_continues_past_failures(tmp_path: Path) -> None:
    source = tmp_path / "input"
    _make_image(source / "a.png", color="red")
    # 扩展名匹配但内容损坏 -> 加载失败
    (source / "b.png").write_text("not an image")
    _make_image(source / "c.png", color="green")

    result = run_job(source, ProcessingConfig(output_dir=tmp_path / "out", format="jpg"))

    assert len(result.processed) + len(result.skipped) + len(result.failed) == 3
    assert [item.input_path.name for item in result.processed] == ["a.png", "c.png"]
    assert [item.output_path.name for item in result.processed] == ["a.jpg", "c.jpg"]
    assert len(result.failed) == 1
    assert result.failed[0].file_path.name == "b.png"
    assert result.failed[0].kind == "load-failure"
    assert result.totals.processed_count == 2
    assert result.totals.failed_count == 1
    assert result.totals.total_original == sum(item.original_size for item in result.processed)


def test_rerun_without_overwrite_skips_everything(tmp_path: Path) -> None:
    source = tmp_path / "input"
    _make_image(source / "a.png")
    _make_image(source / "b.png")
    config = ProcessingConfig(output_dir=tmp_path / "out", format="webp")

    first = run_job(source, config)
    second = run_job(source, config)

    assert first.totals.processed_count == 2
    assert second.processed == []
    assert [record.kind for record in second.skipped] == ["output-exists", "output-exists"]
    assert second.failed == []
    assert second.totals.percent_saved == 0.0


def test_same_directory_output_is_skipped(tmp_path: Path) -> None:
    source = tmp_path / "input"
    _make_image(source / "a.png")

    result = run_job(source, ProcessingConfig(output_dir=source))

    assert result.processed == []
    assert len(result.skipped) == 1
    assert result.skipped[0].kind == "same-path"


def test_single_file_mode_uses_index_zero(tmp_path: Path) -> None:
    source = _make_image(tmp_path / "dog.png")
    config = ProcessingConfig(output_dir=tmp_path / "out", naming=TemplateNaming("{name}-{index}"))

    result = run_job(source, config)

    assert len(result.processed) == 1
    assert result.processed[0].output_path.name == "dog-1.png"


def test_single_file_failure_is_recorded(tmp_path: Path) -> None:
    source = tmp_path / "broken.jpg"
    source.write_text("broken")

    result = run_job(source, ProcessingConfig(output_dir=tmp_path / "out"))

    assert result.processed == []
    assert len(result.failed) == 1
    assert result.totals.failed_count == 1


def test_template_index_follows_listing_order(tmp_path: Path) -> None:
    source = tmp_path / "input"
    for name in ("b.png", "a.png", "c.png"):
        _make_image(source / name)
    config = ProcessingConfig(output_dir=tmp_path / "out", naming=TemplateNaming("img_{index}.{ext}"))

    result = run_job(source, config)

    assert [(item.input_path.name, item.output_path.name) for item in result.processed] == [
        ("a.png", "img_1.png"),
        ("b.png", "img_2.png"),
        ("c.png", "img_3.png"),
    ]


def test_template_collision_is_skipped_not_overwritten(tmp_path: Path) -> None:
    source = tmp_path / "input"
    _make_image(source / "a.png", color="red")
    _make_image(source / "b.png", color="green")
    config = ProcessingConfig(output_dir=tmp_path / "out", naming=TemplateNaming("same.png"))

    result = run_job(source, config)

    assert [item.input_path.name for item in result.processed] == ["a.png"]
    assert [record.file_path.name for record in result.skipped] == ["b.png"]
    with Image.open(tmp_path / "out" / "same.png") as img:
        assert img.getpixel((0, 0)) == (255, 0, 0)


def test_progress_callback_reports_each_file(tmp_path: Path) -> None:
    source = tmp_path / "input"
    _make_image(source / "a.png")
    (source / "b.png").write_text("broken")
    updates: list[ProgressUpdate] = []

    run_job(source, ProcessingConfig(output_dir=tmp_path / "out"), progress_callback=updates.append)

    assert [(u.completed, u.total, u.status) for u in updates] == [
        (1, 2, "processed"),
        (2, 2, "failed"),
        (2, 2, "done"),
    ]


def test_empty_directory_still_reports_done(tmp_path: Path) -> None:
    source = tmp_path / "input"
    source.mkdir()
    updates: list[ProgressUpdate] = []

    run_job(source, ProcessingConfig(output_dir=tmp_path / "out"), progress_callback=updates.append)

    assert [(u.completed, u.total, u.status) for u in updates] == [(0, 0, "done")]


def test_missing_input_raises(tmp_path: Path) -> None:
    with pytest.raises(InputNotFoundError):
        run_job(tmp_path / "nope", ProcessingConfig(output_dir=tmp_path / "out"))


@pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="需要 FIFO 支持")
def test_special_file_is_rejected(tmp_path: Path) -> None:
    fifo = tmp_path / "pipe.png"
    os.mkfifo(fifo)

    with pytest.raises(InvalidInputTypeError):
        run_job(fifo, ProcessingConfig(output_dir=tmp_path / "out"))


def test_unreadable_directory_raises(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    source = tmp_path / "input"
    source.mkdir()

    def deny(path: object) -> None:
        raise PermissionError(13, "Permission denied", str(path))

    monkeypatch.setattr(os, "scandir", deny)

    with pytest.raises(DirectoryReadError):
        run_job(source, ProcessingConfig(output_dir=tmp_path / "out"))
