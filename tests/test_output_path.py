"""输出路径计算：后缀拼接与重命名模板。"""

from __future__ import annotations

from pathlib import Path

from pulp_image.core.config import ProcessingConfig, SuffixNaming, TemplateNaming
from pulp_image.core.output_manager import OutputManager, build_output_path


def make_config(output: Path, **overrides) -> ProcessingConfig:
    return ProcessingConfig(output_dir=output, **overrides)


def test_auto_suffix_with_both_dimensions(tmp_path: Path) -> None:
    config = make_config(tmp_path / "out", width=800, height=600, naming=SuffixNaming(auto_suffix=True))

    result = build_output_path(tmp_path / "photo.png", config)

    assert result == (tmp_path / "out").resolve() / "photo-800x600.png"


def test_auto_suffix_width_only_and_height_only(tmp_path: Path) -> None:
    by_width = make_config(tmp_path, width=800, naming=SuffixNaming(auto_suffix=True))
    by_height = make_config(tmp_path, height=300, naming=SuffixNaming(auto_suffix=True))

    assert build_output_path(tmp_path / "photo.png", by_width).name == "photo-800w.png"
    assert build_output_path(tmp_path / "photo.png", by_height).name == "photo-300h.png"


def test_auto_suffix_without_dimensions_adds_nothing(tmp_path: Path) -> None:
    config = make_config(tmp_path, naming=SuffixNaming(auto_suffix=True))

    assert build_output_path(tmp_path / "photo.png", config).name == "photo.png"


def test_custom_suffix_follows_auto_suffix(tmp_path: Path) -> None:
    config = make_config(
        tmp_path,
        width=800,
        format="webp",
        naming=SuffixNaming(auto_suffix=True, custom_suffix="thumb"),
    )

    assert build_output_path(tmp_path / "photo.jpg", config).name == "photo-800w-thumb.webp"


def test_custom_suffix_without_auto_suffix(tmp_path: Path) -> None:
    config = make_config(tmp_path, width=800, naming=SuffixNaming(custom_suffix="small"))

    assert build_output_path(tmp_path / "photo.jpeg", config).name == "photo-small.jpeg"


def test_format_override_changes_extension(tmp_path: Path) -> None:
    config = make_config(tmp_path / "out", format="jpeg")

    assert build_output_path(tmp_path / "photo.png", config).name == "photo.jpg"


def test_rename_template_uses_one_based_index(tmp_path: Path) -> None:
    config = make_config(tmp_path, format="webp", naming=TemplateNaming("{name}_{index}.{ext}"))

    assert build_output_path(tmp_path / "cat.jpg", config, file_index=1).name == "cat_2.webp"


def test_rename_template_defaults_index_and_appends_extension(tmp_path: Path) -> None:
    config = make_config(tmp_path, naming=TemplateNaming("holiday-{index}"))

    assert build_output_path(tmp_path / "beach.png", config).name == "holiday-1.png"


def test_rename_template_wins_over_suffix_options(tmp_path: Path) -> None:
    config = ProcessingConfig.from_options(
        out=tmp_path,
        width=100,
        rename_pattern="{name}-renamed",
        suffix="ignored",
        auto_suffix=True,
    )

    assert isinstance(config.naming, TemplateNaming)
    assert build_output_path(tmp_path / "dog.png", config, file_index=0).name == "dog-renamed.png"


def test_build_output_path_does_not_create_directory(tmp_path: Path) -> None:
    target = tmp_path / "missing" / "nested"
    config = make_config(target)

    result = build_output_path(tmp_path / "photo.png", config)

    assert result.parent == target.resolve()
    assert not target.exists()


def test_output_manager_creates_directory_once(tmp_path: Path) -> None:
    manager = OutputManager()
    target = tmp_path / "a" / "b"

    manager.ensure_directory(target)
    manager.ensure_directory(target)

    assert target.is_dir()
    assert manager.created_directories == frozenset({target})
