"""Maps segmented markdown to a renderer-agnostic styled tree.

One pipeline serves both targets. ``RenderMode.PREVIEW`` strips delimiters and
embeds images; ``RenderMode.LIVE_EDIT`` keeps every source character visible
so the styled text can be edited in place. Both modes emit the same
line/run structure, only the visible text differs.
"""

from __future__ import annotations

import enum
import logging
import os
from dataclasses import dataclass, replace
from typing import Callable

from PySide6.QtGui import QImageReader

from epicmd.core.block_segmenter import segment
from epicmd.core.markdown_model import (
    BlankLine,
    Block,
    Bold,
    Code,
    Document,
    Heading,
    ImageRef,
    Italic,
    Link,
    ListBlock,
    ListItem,
    Paragraph,
    Span,
)
from epicmd.settings_models import RenderStyle

logger = logging.getLogger(__name__)

BULLET_TEXT = "• "
INDENT_TEXT = "    "

LinkHandler = Callable[[str], None]
ImageClickHandler = Callable[[str], None]


class RenderMode(str, enum.Enum):
    PREVIEW = "preview"
    LIVE_EDIT = "live_edit"


@dataclass(frozen=True, slots=True)
class EmbeddedImage:
    path: str
    source_path: str
    width: int
    height: int
    clickable: bool = False


@dataclass(frozen=True, slots=True)
class StyledRun:
    text: str
    color: str
    font_size: float
    bold: bool = False
    italic: bool = False
    underline: bool = False
    background: str | None = None
    font_family: str | None = None
    link_url: str | None = None
    image: EmbeddedImage | None = None


@dataclass(frozen=True, slots=True)
class StyledLine:
    kind: str
    runs: tuple[StyledRun, ...] = ()
    heading_level: int = 0
    indent_level: int = 0
    top_margin: float = 2
    bottom_margin: float = 2

    @property
    def text(self) -> str:
        return "".join(run.text for run in self.runs)


@dataclass(frozen=True, slots=True)
class StyledTree:
    mode: RenderMode
    background: str
    foreground: str
    font_family: str
    font_size: float
    lines: tuple[StyledLine, ...] = ()

    @property
    def text(self) -> str:
        return "\n".join(line.text for line in self.lines)


def resolve_image_path(path: str, base_dir: str | None) -> str:
    text = str(path or "").strip()
    if os.path.isabs(text):
        return text
    return os.path.join(base_dir or os.getcwd(), text)


class RenderPipeline:
    """Renders documents with one style; owns the injected click handlers."""

    def __init__(
        self,
        style: RenderStyle | None = None,
        *,
        base_dir: str | None = None,
        link_handler: LinkHandler | None = None,
        image_click_handler: ImageClickHandler | None = None,
    ) -> None:
        self._style = style or RenderStyle()
        self._base_dir = str(base_dir or "").strip() or None
        self.link_handler = link_handler
        self.image_click_handler = image_click_handler

    @property
    def style(self) -> RenderStyle:
        return self._style

    def set_style(self, style: RenderStyle) -> None:
        self._style = style

    @property
    def base_dir(self) -> str | None:
        return self._base_dir

    def set_base_dir(self, base_dir: str | None) -> None:
        self._base_dir = str(base_dir or "").strip() or None

    # ---------- handlers ----------
    def activate_link(self, url: str) -> bool:
        handler = self.link_handler
        if not callable(handler) or not url:
            return False
        try:
            handler(url)
        except Exception:
            logger.warning("Link handler failed for %r", url, exc_info=True)
            return False
        return True

    def activate_image(self, path: str) -> bool:
        handler = self.image_click_handler
        if not callable(handler) or not path or not self._style.image_resize_enabled:
            return False
        try:
            handler(path)
        except Exception:
            logger.warning("Image click handler failed for %r", path, exc_info=True)
            return False
        return True

    # ---------- rendering ----------
    def render_text(self, text: str, mode: RenderMode) -> StyledTree:
        return self.render(segment(text), mode)

    def render(self, document: Document, mode: RenderMode) -> StyledTree:
        mode = RenderMode(mode)
        style = self._style
        lines: list[StyledLine] = []
        for block in document.blocks:
            lines.extend(self._render_block(block, mode))
        return StyledTree(
            mode=mode,
            background=style.background_color,
            foreground=style.text_color,
            font_family=style.font_family,
            font_size=style.font_size,
            lines=tuple(lines),
        )

    def _render_block(self, block: Block, mode: RenderMode) -> list[StyledLine]:
        if isinstance(block, Heading):
            return [self._render_heading(block, mode)]
        if isinstance(block, ListBlock):
            return [self._render_list_item(item, mode) for item in block.items]
        if isinstance(block, ImageRef):
            return [self._render_image(block, mode)]
        if isinstance(block, BlankLine):
            text = block.text if mode is RenderMode.LIVE_EDIT else ""
            return [StyledLine(kind="blank", runs=(self._plain_run(text),))]
        if isinstance(block, Paragraph):
            return [StyledLine(kind="paragraph", runs=self._render_spans(block.spans, mode))]
        raise TypeError(f"Unsupported block type: {type(block).__name__}")

    def _plain_run(self, text: str, *, font_size: float | None = None) -> StyledRun:
        style = self._style
        return StyledRun(
            text=text,
            color=style.regular_text_color,
            font_size=style.font_size if font_size is None else font_size,
        )

    def _render_heading(self, block: Heading, mode: RenderMode) -> StyledLine:
        style = self._style
        level = block.level
        base = StyledRun(
            text="",
            color=style.heading_color(level),
            font_size=style.heading_size(level),
            bold=level == 2,
            underline=level in (1, 3),
        )
        runs: list[StyledRun] = []
        if mode is RenderMode.LIVE_EDIT:
            runs.append(_with_text(base, block.marker))
        runs.extend(self._render_spans(block.spans, mode, heading=base))
        return StyledLine(
            kind="heading",
            runs=tuple(runs),
            heading_level=level,
            top_margin=5,
            bottom_margin=5,
        )

    def _render_list_item(self, item: ListItem, mode: RenderMode) -> StyledLine:
        style = self._style
        if mode is RenderMode.LIVE_EDIT:
            marker_text = item.prefix
        else:
            marker_text = INDENT_TEXT * item.indent_level + BULLET_TEXT
        marker = StyledRun(text=marker_text, color=style.bullet_color, font_size=style.font_size)
        return StyledLine(
            kind="list_item",
            runs=(marker, *self._render_spans(item.spans, mode)),
            indent_level=item.indent_level,
            top_margin=1,
            bottom_margin=1,
        )

    def _render_image(self, image: ImageRef, mode: RenderMode) -> StyledLine:
        style = self._style
        if mode is RenderMode.LIVE_EDIT:
            run = StyledRun(text=image.source, color=style.link_color, font_size=style.font_size)
        else:
            run = self._embed_image(image)
        return StyledLine(kind="image", runs=(run,), top_margin=5, bottom_margin=5)

    def _image_error_run(self, message: str) -> StyledRun:
        style = self._style
        return StyledRun(text=message, color=style.error_color, font_size=style.font_size, italic=True)

    def _embed_image(self, image: ImageRef) -> StyledRun:
        """Builds the image run, or a red italic placeholder; never raises."""
        style = self._style
        try:
            full_path = resolve_image_path(image.path, self._base_dir)
            if not os.path.isfile(full_path):
                logger.debug("Image not found: %s", full_path)
                return self._image_error_run(f"[Image not found: {image.path}]")

            reader = QImageReader(full_path)
            size = reader.size()
            if not size.isValid() or size.width() <= 0 or size.height() <= 0:
                decoded = reader.read()
                if decoded.isNull():
                    reason = reader.errorString() or "unreadable image"
                    logger.debug("Could not decode image %s: %s", full_path, reason)
                    return self._image_error_run(f"[Error loading image: {image.path} ({reason})]")
                size = decoded.size()

            width = int(image.width_px or style.default_image_width)
            height = max(1, int(round(size.height() * (float(width) / float(size.width())))))
        except Exception as exc:
            logger.debug("Image resolution failed for %s", image.path, exc_info=True)
            return self._image_error_run(f"[Error loading image: {image.path} ({exc})]")

        embedded = EmbeddedImage(
            path=full_path,
            source_path=image.path,
            width=width,
            height=height,
            clickable=style.image_resize_enabled,
        )
        return StyledRun(
            text="\ufffc",
            color=style.text_color,
            font_size=style.font_size,
            image=embedded,
        )

    def _render_spans(
        self,
        spans: tuple[Span, ...],
        mode: RenderMode,
        *,
        heading: StyledRun | None = None,
    ) -> tuple[StyledRun, ...]:
        return tuple(self._render_span(span, mode, heading) for span in spans)

    def _render_span(self, span: Span, mode: RenderMode, heading: StyledRun | None) -> StyledRun:
        style = self._style
        live = mode is RenderMode.LIVE_EDIT
        text = span.raw if live else span.text
        base = heading if heading is not None else self._plain_run("")

        if isinstance(span, Bold):
            color = base.color if heading is not None else style.bold_color
            return _with_text(base, text, color=color, bold=True)
        if isinstance(span, Italic):
            color = base.color if heading is not None else style.italic_color
            return _with_text(base, text, color=color, italic=True)
        if isinstance(span, Link):
            return _with_text(
                base,
                text,
                color=style.link_color,
                underline=not live,
                link_url=span.url,
            )
        if isinstance(span, Code):
            return _with_text(
                base,
                text,
                background=style.code_background,
                font_family=style.code_font_family,
            )
        return _with_text(base, text)


def _with_text(run: StyledRun, text: str, **changes) -> StyledRun:
    return replace(run, text=text, **changes)


def render(
    document: Document,
    style: RenderStyle,
    mode: RenderMode,
    *,
    base_dir: str | None = None,
) -> StyledTree:
    return RenderPipeline(style, base_dir=base_dir).render(document, mode)
