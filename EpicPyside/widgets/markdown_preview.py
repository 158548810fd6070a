"""Read-only rendered view of markdown text."""

from __future__ import annotations

import logging

from PySide6.QtCore import QUrl, Qt, Signal
from PySide6.QtGui import QTextCursor, QTextImageFormat
from PySide6.QtWidgets import QTextBrowser

from EpicPyside.widgets.styled_document import (
    IMAGE_CLICKABLE_PROPERTY,
    IMAGE_PATH_PROPERTY,
    apply_tree_palette,
    write_styled_tree,
)
from epicmd.core.render_pipeline import (
    ImageClickHandler,
    LinkHandler,
    RenderMode,
    RenderPipeline,
    StyledTree,
)
from epicmd.settings_models import RenderStyle

logger = logging.getLogger(__name__)


class MarkdownPreviewWidget(QTextBrowser):
    """Shows markdown with delimiters stripped, images embedded and links clickable."""

    linkActivated = Signal(str)
    imageClicked = Signal(str)
    renderCompleted = Signal(object)  # StyledTree

    def __init__(
        self,
        parent=None,
        *,
        style: RenderStyle | None = None,
        link_handler: LinkHandler | None = None,
        image_click_handler: ImageClickHandler | None = None,
    ):
        super().__init__(parent)
        self.setReadOnly(True)
        self.setOpenLinks(False)
        self.document().setUndoRedoEnabled(False)
        self.setOpenExternalLinks(False)
        self.setMouseTracking(True)

        self._pipeline = RenderPipeline(
            style,
            link_handler=link_handler,
            image_click_handler=image_click_handler,
        )
        self._source_text = ""
        self._last_tree: StyledTree | None = None
        self.anchorClicked.connect(self._on_anchor_clicked)

    @property
    def pipeline(self) -> RenderPipeline:
        return self._pipeline

    @property
    def last_tree(self) -> StyledTree | None:
        return self._last_tree

    def markdown(self) -> str:
        return self._source_text

    def set_markdown(self, text: str, base_dir: str | None = None) -> StyledTree:
        self._source_text = str(text or "")
        if base_dir is not None:
            self._pipeline.set_base_dir(base_dir)
        return self.refresh()

    def set_style(self, style: RenderStyle) -> StyledTree:
        self._pipeline.set_style(style)
        return self.refresh()

    def set_base_dir(self, base_dir: str | None) -> None:
        self._pipeline.set_base_dir(base_dir)

    def set_link_handler(self, handler: LinkHandler | None) -> None:
        self._pipeline.link_handler = handler

    def set_image_click_handler(self, handler: ImageClickHandler | None) -> None:
        self._pipeline.image_click_handler = handler

    def refresh(self) -> StyledTree:
        tree = self._pipeline.render_text(self._source_text, RenderMode.PREVIEW)
        bar = self.verticalScrollBar()
        scroll = bar.value()
        write_styled_tree(self.document(), tree)
        apply_tree_palette(self, tree)
        bar.setValue(min(scroll, bar.maximum()))
        self._last_tree = tree
        self.renderCompleted.emit(tree)
        return tree

    # ---------- activation ----------
    def _on_anchor_clicked(self, url: QUrl) -> None:
        target = url.toString()
        if not target:
            return
        self.linkActivated.emit(target)
        self._pipeline.activate_link(target)

    def _image_at(self, cursor: QTextCursor) -> QTextImageFormat | None:
        candidates = [QTextCursor(cursor)]
        if not cursor.atBlockEnd():
            after = QTextCursor(cursor)
            after.movePosition(QTextCursor.Right)
            candidates.append(after)
        for candidate in candidates:
            fmt = candidate.charFormat()
            if fmt.isImageFormat():
                return fmt.toImageFormat()
        return None

    def activate_image_at(self, offset: int) -> bool:
        cursor = QTextCursor(self.document())
        cursor.setPosition(max(0, min(int(offset), self.document().characterCount() - 1)))
        fmt = self._image_at(cursor)
        if fmt is None or not bool(fmt.property(IMAGE_CLICKABLE_PROPERTY)):
            return False
        path = str(fmt.property(IMAGE_PATH_PROPERTY) or fmt.name() or "")
        if not path:
            return False
        self.imageClicked.emit(path)
        self._pipeline.activate_image(path)
        return True

    def mousePressEvent(self, e):
        if e.button() == Qt.LeftButton:
            cursor = self.cursorForPosition(e.position().toPoint())
            if self.activate_image_at(cursor.position()):
                e.accept()
                return
        super().mousePressEvent(e)
