"""颜色工具函数。"""

from __future__ import annotations

import logging
import re
from typing import Optional, Tuple

from pulp_image.core.exceptions import InvalidConfigurationError

LOGGER = logging.getLogger(__name__)

HEX_COLOR_RE = re.compile(r"^#([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")
WHITE = (255, 255, 255)


def parse_hex_color(value: str) -> Tuple[int, int, int]:
    """将 ``#rgb`` 或 ``#rrggbb`` 解析为 RGB 三元组。"""

    if not value:
        raise InvalidConfigurationError("颜色值不能为空")

    match = HEX_COLOR_RE.match(value.strip())
    if not match:
        raise InvalidConfigurationError(f"无法解析颜色值: {value}")

    hex_value = match.group(1)
    if len(hex_value) == 3:
        hex_value = "".join(ch * 2 for ch in hex_value)

    r = int(hex_value[0:2], 16)
    g = int(hex_value[2:4], 16)
    b = int(hex_value[4:6], 16)
    return r, g, b


def parse_background_color(value: Optional[str]) -> Tuple[int, int, int]:
    """解析透明填充背景色，无法解析时回退为白色。"""

    try:
        return parse_hex_color(value or "")
    except InvalidConfigurationError:
        LOGGER.debug("背景色 %r 无法解析，使用白色", value)
        return WHITE
