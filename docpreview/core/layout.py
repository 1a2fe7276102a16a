from __future__ import annotations

import copy
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from docpreview.core.config import DEFAULT_LAYOUT_PATH

DEFAULT_LAYOUT: dict[str, Any] = {
    "page": {"width": 595, "height": 842},
    "margins": {"top": 42, "bottom": 50, "left": 50, "right": 50},
    "fonts": {"regular": "tiro", "bold": "tibo"},
    "paragraph": {"size": 12, "line_height": 16, "spacing_after": 8},
    "heading": {"sizes": {1: 18, 2: 14, 3: 12}, "line_gap": 4, "spacing_after": 10},
    "list": {"bullet": "•", "spacing_after": 8},
    "blockquote": {
        "indent": 15,
        "rule_offset": 10,
        "rule_width": 2,
        "rule_color": [0.5, 0.5, 0.5],
        "text_color": [0.4, 0.4, 0.4],
        "spacing_after": 8,
    },
    "horizontal_rule": {"width": 1, "color": [0.7, 0.7, 0.7], "spacing": 12},
}


def _merge_nested_dict(existing: dict, incoming: dict | None) -> dict:
    merged = copy.deepcopy(existing)
    if not isinstance(incoming, dict):
        return merged
    for key, value in incoming.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _merge_nested_dict(merged[key], value)
        else:
            merged[key] = value
    return merged


@dataclass(frozen=True)
class Layout:
    """Resolved page geometry; ``raw`` keeps the merged YAML mapping."""

    raw: dict[str, Any]

    def section(self, name: str) -> dict[str, Any]:
        return self.raw[name]

    @property
    def page_width(self) -> float:
        return float(self.raw["page"]["width"])

    @property
    def page_height(self) -> float:
        return float(self.raw["page"]["height"])

    @property
    def left(self) -> float:
        return float(self.raw["margins"]["left"])

    @property
    def top(self) -> float:
        return float(self.raw["margins"]["top"])

    @property
    def bottom(self) -> float:
        return self.page_height - float(self.raw["margins"]["bottom"])

    @property
    def text_width(self) -> float:
        return self.page_width - self.left - float(self.raw["margins"]["right"])

    def heading_size(self, level: int) -> float:
        sizes = {int(key): value for key, value in self.raw["heading"]["sizes"].items()}
        if level in sizes:
            return float(sizes[level])
        return float(sizes[max(sizes)])


def load_layout(path: Path | None = None) -> Layout:
    """Load the layout YAML, falling back to the built-in defaults."""

    path = path or DEFAULT_LAYOUT_PATH
    if not path.exists():
        return Layout(raw=copy.deepcopy(DEFAULT_LAYOUT))
    with path.open("r", encoding="utf-8") as fp:
        data = yaml.safe_load(fp) or {}
    return Layout(raw=_merge_nested_dict(DEFAULT_LAYOUT, data))


_layout: Layout | None = None


def configure_layout(layout: Layout | None) -> None:
    """Install the layout used when ``render_pdf`` is called without one."""

    global _layout
    _layout = layout


def get_layout() -> Layout:
    global _layout
    if _layout is None:
        _layout = load_layout()
    return _layout
