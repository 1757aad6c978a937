from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
import tomllib
from typing import Any, Mapping

from ohlc_chart.renderer import DEFAULT_VOLUME_HEIGHT
from ohlc_chart.request import ChartRequest
from ohlc_chart.theme import THEMES, Theme, theme_with_overrides


DEFAULT_COPYRIGHT_OWNER = "imars.com"
_TOP_LEVEL_KEYS = {"copyright_owner", "volume_height", "defaults", "themes"}
_DEFAULT_KEYS = {"symbol": "s", "interval": "i", "width": "w", "height": "h", "theme": "t", "trend_line": "tl", "studies": "st"}


@dataclass(frozen=True)
class ChartConfig:
    """Deployment-level settings; everything a request does not carry itself."""

    defaults: ChartRequest = field(default_factory=ChartRequest)
    copyright_owner: str = DEFAULT_COPYRIGHT_OWNER
    volume_height: int = DEFAULT_VOLUME_HEIGHT
    themes: Mapping[str, Theme] = field(default_factory=lambda: dict(THEMES))

    def theme(self, name: str) -> Theme:
        try:
            return self.themes[name]
        except KeyError:
            raise ValueError(f"theme {name!r} is not configured") from None


def load_config(path: str | Path) -> ChartConfig:
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"chart config not found: {config_path}")
    with config_path.open("rb") as f:
        raw = tomllib.load(f)
    return config_from_mapping(raw)


def config_from_mapping(raw: Mapping[str, Any]) -> ChartConfig:
    unknown = sorted(set(raw) - _TOP_LEVEL_KEYS)
    if unknown:
        raise ValueError(f"unknown config keys: {', '.join(unknown)}")

    owner = raw.get("copyright_owner", DEFAULT_COPYRIGHT_OWNER)
    if not isinstance(owner, str) or not owner.strip():
        raise ValueError("`copyright_owner` must be a non-empty string")

    volume_height = raw.get("volume_height", DEFAULT_VOLUME_HEIGHT)
    if isinstance(volume_height, bool) or not isinstance(volume_height, int) or volume_height < 0:
        raise ValueError("`volume_height` must be a non-negative integer")

    defaults_raw = raw.get("defaults", {})
    if not isinstance(defaults_raw, Mapping):
        raise ValueError("`defaults` must be a table")
    bad = sorted(set(defaults_raw) - set(_DEFAULT_KEYS))
    if bad:
        raise ValueError(f"unknown request defaults: {', '.join(bad)}")
    params = {_DEFAULT_KEYS[key]: value for key, value in defaults_raw.items()}
    defaults = ChartRequest.from_params(params)

    themes = dict(THEMES)
    themes_raw = raw.get("themes", {})
    if not isinstance(themes_raw, Mapping):
        raise ValueError("`themes` must be a table")
    for name, overrides in themes_raw.items():
        if name not in themes:
            raise ValueError(f"unknown theme in config: {name}")
        if not isinstance(overrides, Mapping):
            raise ValueError(f"`themes.{name}` must be a table")
        themes[name] = theme_with_overrides(themes[name], overrides)

    return ChartConfig(defaults=defaults, copyright_owner=owner.strip(), volume_height=volume_height, themes=themes)
