from __future__ import annotations

from dataclasses import asdict, dataclass, replace
import re
from typing import Any, Mapping

from ohlc_chart.errors import RequestError

_HEX_COLOR = re.compile(r"^#[0-9a-fA-F]{6}$")

COLOR_SLOTS = (
    "background",
    "grid",
    "major_grid",
    "title",
    "up",
    "down",
    "border",
    "label",
    "volume",
    "line",
    "bollinger",
)


@dataclass(frozen=True)
class Theme:
    """Named palette of ``0xRRGGBB`` colours.

    ``down=None`` is the monochrome case: falling bars are drawn in ``up``.
    """

    name: str
    background: int
    grid: int
    major_grid: int
    title: int
    up: int
    down: int | None
    border: int
    label: int
    volume: int
    line: int
    bollinger: int = 0xB0B0B0


# TradeStation black theme.
BLACK = Theme(
    name="black",
    background=0x000000,
    grid=0x404040,
    major_grid=0x606060,
    title=0x00FF00,
    up=0x00FF00,
    down=0xFF0000,
    border=0xFF0000,
    label=0xFFFFFF,
    volume=0x4040FF,
    line=0xFF0000,
)

# TradeStation research report theme.
WHITE = Theme(
    name="white",
    background=0xFFFFFF,
    grid=0xE0E0E0,
    major_grid=0x909090,
    title=0x008000,
    up=0x008000,
    down=None,
    border=0xFF6060,
    label=0x000000,
    volume=0x6060FF,
    line=0xFF6060,
)

THEMES: dict[str, Theme] = {BLACK.name: BLACK, WHITE.name: WHITE}


def get_theme(name: str) -> Theme:
    try:
        return THEMES[name]
    except KeyError:
        raise RequestError(f"unknown theme {name!r}; expected one of {', '.join(sorted(THEMES))}") from None


def parse_color(value: Any, *, slot: str) -> int | None:
    """Accept ``#RRGGBB`` strings or ints; ``None``/``false`` only for ``down``."""
    if slot == "down" and (value is None or value is False or value == ""):
        return None
    if isinstance(value, bool):
        raise ValueError(f"Color `{slot}` must be a hex color (#RRGGBB)")
    if isinstance(value, int):
        if not 0 <= value <= 0xFFFFFF:
            raise ValueError(f"Color `{slot}` is out of range: {value}")
        return value
    if isinstance(value, str) and _HEX_COLOR.match(value):
        return int(value[1:], 16)
    raise ValueError(f"Color `{slot}` must be a hex color (#RRGGBB)")


def theme_with_overrides(base: Theme, overrides: Mapping[str, Any] | None = None) -> Theme:
    """Validate colour overrides against ``base`` and return the merged theme."""
    if not overrides:
        return base
    known = asdict(base)
    changes: dict[str, Any] = {}
    for key, value in overrides.items():
        if key not in known or key == "name":
            raise ValueError(f"Unknown theme color: {key}")
        changes[key] = parse_color(value, slot=key)
    return replace(base, **changes)
