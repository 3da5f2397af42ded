"""编码参数映射与尺寸计算。"""

from __future__ import annotations

from typing import Optional

import pytest
from PIL import Image

from pulp_image.processing.transform import build_save_options, compute_target_size, flatten_alpha


@pytest.mark.parametrize(
    ("fmt", "quality", "lossless", "expected"),
    [
        ("png", None, False, {"optimize": True}),
        ("png", 50, False, {"optimize": True}),
        ("png", None, True, {"optimize": True}),
        ("jpg", 80, False, {"optimize": True, "quality": 80}),
        ("jpeg", 65, False, {"optimize": True, "quality": 65}),
        ("webp", 80, False, {"quality": 80}),
        ("webp", 30, False, {"quality": 30}),
        ("webp", None, True, {"lossless": True}),
        ("webp", 90, True, {"lossless": True}),
        ("avif", 50, False, {"quality": 50}),
        ("avif", None, True, {"quality": 100, "subsampling": "4:4:4"}),
    ],
)
def test_build_save_options(fmt: str, quality: Optional[int], lossless: bool, expected: dict) -> None:
    assert build_save_options(fmt, quality, lossless) == expected


def test_png_never_receives_quality() -> None:
    for quality in (1, 50, 100):
        assert "quality" not in build_save_options("png", quality, False)


@pytest.mark.parametrize(
    ("size", "width", "height", "expected"),
    [
        ((100, 50), 40, 40, (40, 40)),
        ((100, 50), 50, None, (50, 25)),
        ((100, 50), None, 10, (20, 10)),
        ((1000, 1), 10, None, (10, 1)),
    ],
)
def test_compute_target_size(
    size: tuple[int, int], width: Optional[int], height: Optional[int], expected: tuple[int, int]
) -> None:
    assert compute_target_size(size, width, height) == expected


def test_flatten_alpha_composites_onto_background() -> None:
    image = Image.new("RGBA", (4, 4), (0, 0, 0, 0))

    flattened = flatten_alpha(image, (0, 255, 0))

    assert flattened.mode == "RGB"
    assert flattened.getpixel((0, 0)) == (0, 255, 0)
