from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping, TypedDict

from PySide6.QtGui import QColor

SETTINGS_FILENAME = "settings.json"
DEFAULT_RENDER_DEBOUNCE_MS = 500
DEFAULT_AUTO_SAVE_SECONDS = 120


class ThemeSettings(TypedDict, total=False):
    background_color: str
    text_color: str
    selection_background: str


class FontSettings(TypedDict, total=False):
    font_family: str
    code_font_family: str
    regular_text_size: float
    heading1_size: float
    heading2_size: float
    heading3_size: float


class ColorSettings(TypedDict, total=False):
    regular_text: str
    heading1: str
    heading2: str
    heading3: str
    italic: str
    bold: str
    link: str
    bullet_point: str
    code_block: str
    error: str


class EditorSettings(TypedDict, total=False):
    render_debounce_ms: int
    auto_save_seconds: float
    word_wrap: bool
    tab_size: int


class ImageSettings(TypedDict, total=False):
    default_width: int
    enable_resize: bool


class AppSettings(TypedDict, total=False):
    theme: ThemeSettings
    fonts: FontSettings
    colors: ColorSettings
    editor: EditorSettings
    images: ImageSettings


@dataclass(slots=True)
class SettingsPaths:
    settings_dir: Path
    settings_file: Path = field(init=False)

    def __post_init__(self) -> None:
        self.settings_dir = Path(self.settings_dir)
        self.settings_file = self.settings_dir / SETTINGS_FILENAME


def default_app_settings() -> AppSettings:
    defaults: AppSettings = {
        "theme": {
            "background_color": "#1e1e1e",
            "text_color": "#d4d4d4",
            "selection_background": "#264f78",
        },
        "fonts": {
            "font_family": "Consolas",
            "code_font_family": "Consolas",
            "regular_text_size": 12,
            "heading1_size": 26,
            "heading2_size": 18,
            "heading3_size": 16,
        },
        "colors": {
            "regular_text": "#d4d4d4",
            "heading1": "#569cd6",
            "heading2": "#4ec9b0",
            "heading3": "#dcdcaa",
            "italic": "#ffeb3b",
            "bold": "#f44336",
            "link": "#4fc3f7",
            "bullet_point": "#808080",
            "code_block": "#2d2d30",
            "error": "#ff0000",
        },
        "editor": {
            "render_debounce_ms": DEFAULT_RENDER_DEBOUNCE_MS,
            "auto_save_seconds": DEFAULT_AUTO_SAVE_SECONDS,
            "word_wrap": True,
            "tab_size": 4,
        },
        "images": {
            "default_width": 400,
            "enable_resize": True,
        },
    }
    return deepcopy(defaults)


def _section(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = data.get(name) if isinstance(data, Mapping) else None
    return value if isinstance(value, Mapping) else {}


def _color(value: Any, fallback: str = "#ffffff") -> str:
    # Unparseable colors fall back to white.
    text = str(value or "").strip()
    if text and QColor(text).isValid():
        return text
    return fallback


def _number(value: Any, fallback: float, *, minimum: float = 1.0) -> float:
    if isinstance(value, bool):
        return fallback
    try:
        number = float(value)
    except (TypeError, ValueError):
        return fallback
    if number < minimum:
        return fallback
    return number


def _flag(value: Any, fallback: bool) -> bool:
    return value if isinstance(value, bool) else fallback


@dataclass(frozen=True, slots=True)
class RenderStyle:
    """Read-only styling consumed by the render pipeline."""

    background_color: str = "#1e1e1e"
    text_color: str = "#d4d4d4"
    regular_text_color: str = "#d4d4d4"
    font_family: str = "Consolas"
    font_size: float = 12
    heading_sizes: tuple[float, float, float] = (26, 18, 16)
    heading_colors: tuple[str, str, str] = ("#569cd6", "#4ec9b0", "#dcdcaa")
    bold_color: str = "#f44336"
    italic_color: str = "#ffeb3b"
    link_color: str = "#4fc3f7"
    bullet_color: str = "#808080"
    code_background: str = "#2d2d30"
    code_font_family: str = "Consolas"
    error_color: str = "#ff0000"
    default_image_width: int = 400
    image_resize_enabled: bool = True

    def heading_size(self, level: int) -> float:
        return self.heading_sizes[max(1, min(3, int(level))) - 1]

    def heading_color(self, level: int) -> str:
        return self.heading_colors[max(1, min(3, int(level))) - 1]

    def with_overrides(self, **changes: Any) -> "RenderStyle":
        return replace(self, **changes)

    @classmethod
    def from_settings(cls, data: Mapping[str, Any] | None) -> "RenderStyle":
        base = cls()
        data = data if isinstance(data, Mapping) else {}
        theme = _section(data, "theme")
        fonts = _section(data, "fonts")
        colors = _section(data, "colors")
        images = _section(data, "images")

        family = str(fonts.get("font_family") or "").strip() or base.font_family
        code_family = str(fonts.get("code_font_family") or "").strip() or base.code_font_family
        return cls(
            background_color=_color(theme.get("background_color", base.background_color)),
            text_color=_color(theme.get("text_color", base.text_color)),
            regular_text_color=_color(colors.get("regular_text", base.regular_text_color)),
            font_family=family,
            font_size=_number(fonts.get("regular_text_size"), base.font_size),
            heading_sizes=(
                _number(fonts.get("heading1_size"), base.heading_sizes[0]),
                _number(fonts.get("heading2_size"), base.heading_sizes[1]),
                _number(fonts.get("heading3_size"), base.heading_sizes[2]),
            ),
            heading_colors=(
                _color(colors.get("heading1", base.heading_colors[0])),
                _color(colors.get("heading2", base.heading_colors[1])),
                _color(colors.get("heading3", base.heading_colors[2])),
            ),
            bold_color=_color(colors.get("bold", base.bold_color)),
            italic_color=_color(colors.get("italic", base.italic_color)),
            link_color=_color(colors.get("link", base.link_color)),
            bullet_color=_color(colors.get("bullet_point", base.bullet_color)),
            code_background=_color(colors.get("code_block", base.code_background)),
            code_font_family=code_family,
            error_color=_color(colors.get("error", base.error_color), base.error_color),
            default_image_width=int(_number(images.get("default_width"), base.default_image_width)),
            image_resize_enabled=_flag(images.get("enable_resize"), base.image_resize_enabled),
        )
