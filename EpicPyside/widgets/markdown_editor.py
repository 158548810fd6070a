"""Live-Edit markdown surface: the source stays visible and is restyled in place."""

from __future__ import annotations

import logging
import os

from PySide6.QtCore import Qt, QTimer, Signal
from PySide6.QtGui import QFont, QTextCharFormat, QTextCursor
from PySide6.QtWidgets import QTextEdit

from EpicPyside.widgets.styled_document import LINK_PROPERTY, StyledTreeHighlighter, apply_tree_palette
from epicmd.core.render_pipeline import LinkHandler, StyledTree
from epicmd.services.file_io import MarkdownFileError, read_markdown, write_markdown
from epicmd.services.live_update import LiveUpdateController
from epicmd.settings_models import DEFAULT_AUTO_SAVE_SECONDS, DEFAULT_RENDER_DEBOUNCE_MS, RenderStyle

logger = logging.getLogger(__name__)


class MarkdownEditorWidget(QTextEdit):
    """QTextEdit that implements the live-update edit surface.

    Edits go through a :class:`LiveUpdateController`, which re-renders the
    whole text after a quiet period and keeps the caret where it was.
    Ctrl+click on a link hands its url to ``link_handler``. While the
    document has a path, unsaved changes are written every
    ``auto_save_seconds`` (0 turns auto-save off).
    """

    modifiedChanged = Signal(bool)
    linkActivated = Signal(str)
    renderCompleted = Signal(object)  # StyledTree
    filePathChanged = Signal(str)
    autoSaved = Signal(str)

    def __init__(
        self,
        parent=None,
        *,
        style: RenderStyle | None = None,
        debounce_ms: int = DEFAULT_RENDER_DEBOUNCE_MS,
        link_handler: LinkHandler | None = None,
        auto_save_seconds: float = DEFAULT_AUTO_SAVE_SECONDS,
    ):
        super().__init__(parent)
        self.setAcceptRichText(False)
        self.setMouseTracking(True)
        self.file_path: str | None = None
        self._highlighter = StyledTreeHighlighter(self.document())

        self._auto_save_timer = QTimer(self)
        self._auto_save_timer.timeout.connect(self._on_auto_save)
        self.set_auto_save_interval(auto_save_seconds)

        self._controller = LiveUpdateController(self, style, debounce_ms=debounce_ms, parent=self)
        self._controller.pipeline.link_handler = link_handler
        self._controller.modifiedChanged.connect(self.modifiedChanged)
        self._controller.renderCompleted.connect(self.renderCompleted)
        self.textChanged.connect(self._controller.notify_edit)
        self._apply_style_font(self._controller.style)

    @property
    def controller(self) -> LiveUpdateController:
        return self._controller

    def is_dirty(self) -> bool:
        return self._controller.is_dirty

    # ---------- edit surface ----------
    def plain_text(self) -> str:
        return self.toPlainText()

    def caret_offset(self) -> int:
        return int(self.textCursor().position())

    def set_caret_offset(self, offset: int) -> bool:
        last = max(0, self.document().characterCount() - 1)
        if offset < 0 or offset > last:
            return False
        cursor = self.textCursor()
        cursor.setPosition(int(offset))
        self.setTextCursor(cursor)
        return True

    def apply_tree(self, tree: StyledTree) -> None:
        # Only a load replaces the text; a render after typing just repaints.
        if self.toPlainText() != tree.text:
            self.setPlainText(tree.text)
        self._highlighter.set_tree(tree)
        apply_tree_palette(self, tree)

    def reset_history(self) -> None:
        self.document().clearUndoRedoStacks()

    # ---------- collaborators ----------
    def load_text(self, content: str) -> None:
        self._controller.load_text(content)

    def get_plain_text(self) -> str:
        return self._controller.get_plain_text()

    def set_style(self, style: RenderStyle) -> None:
        self._apply_style_font(style)
        self._controller.set_style(style)

    def set_base_dir(self, base_dir: str | None) -> None:
        self._controller.set_base_dir(base_dir)

    def set_link_handler(self, handler: LinkHandler | None) -> None:
        self._controller.pipeline.link_handler = handler

    def _apply_style_font(self, style: RenderStyle) -> None:
        font = QFont(style.font_family)
        font.setPointSizeF(float(style.font_size))
        self.setFont(font)

    def set_file_path(self, path: str | None) -> None:
        clean = str(path).strip() if isinstance(path, str) and path.strip() else None
        self.file_path = os.path.abspath(clean) if clean else None
        base_dir = os.path.dirname(self.file_path) if self.file_path else None
        self._controller.set_base_dir(base_dir)
        self.filePathChanged.emit(self.file_path or "")

    def load_file(self, path: str) -> bool:
        target = str(path or "").strip()
        if not target:
            return False
        try:
            content = read_markdown(target)
        except MarkdownFileError as exc:
            logger.warning("Could not open %s: %s", target, exc)
            return False
        self.set_file_path(target)
        self._controller.load_text(content)
        return True

    def save_file(self, path: str | None = None) -> bool:
        target = str(path or self.file_path or "").strip()
        if not target:
            return False
        try:
            write_markdown(target, self.get_plain_text())
        except MarkdownFileError as exc:
            logger.warning("Could not save %s: %s", target, exc)
            return False
        if target != self.file_path:
            self.set_file_path(target)
        self._controller.mark_saved()
        return True

    def new_file(self) -> None:
        self.set_file_path(None)
        self._controller.new_file()

    # ---------- auto-save ----------
    def set_auto_save_interval(self, seconds: float) -> None:
        interval_ms = int(max(0.0, float(seconds or 0)) * 1000)
        if interval_ms <= 0:
            self._auto_save_timer.stop()
            return
        self._auto_save_timer.setInterval(interval_ms)
        self._auto_save_timer.start()

    def auto_save_active(self) -> bool:
        return self._auto_save_timer.isActive()

    def _on_auto_save(self) -> None:
        if not self.file_path or not self.is_dirty():
            return
        if self.save_file():
            logger.info("Auto-saved %s", self.file_path)
            self.autoSaved.emit(self.file_path)

    # ---------- markdown helpers ----------
    def wrap_selection(self, prefix: str, suffix: str, placeholder: str = "text") -> None:
        """Wraps the selection in delimiters, or inserts a delimited placeholder."""
        cursor = self.textCursor()
        selected = cursor.selectedText()
        inner = selected if selected else placeholder
        start = cursor.selectionStart()

        cursor.beginEditBlock()
        cursor.insertText(f"{prefix}{inner}{suffix}")
        cursor.endEditBlock()

        cursor.setPosition(start + len(prefix))
        cursor.setPosition(start + len(prefix) + len(inner), QTextCursor.KeepAnchor)
        self.setTextCursor(cursor)

    def insert_bold(self) -> None:
        self.wrap_selection("**", "**")

    def insert_italic(self) -> None:
        self.wrap_selection("*", "*")

    def insert_at_line_start(self, text: str) -> None:
        cursor = self.textCursor()
        offset_in_block = cursor.position() - cursor.block().position()
        cursor.clearSelection()
        cursor.movePosition(QTextCursor.StartOfBlock)
        cursor.insertText(text)
        cursor.setPosition(cursor.block().position() + offset_in_block + len(text))
        self.setTextCursor(cursor)

    def insert_link(self, text: str, url: str) -> None:
        label = str(text or "").strip() or str(url or "").strip()
        target = str(url or "").strip()
        if not label or not target:
            return
        self.textCursor().insertText(f"[{label}]({target})")

    # ---------- links ----------
    def format_at(self, position: int) -> QTextCharFormat | None:
        block = self.document().findBlock(position)
        if not block.isValid():
            return None
        offset = position - block.position()
        for fmt_range in block.layout().formats():
            if fmt_range.start <= offset < fmt_range.start + fmt_range.length:
                return QTextCharFormat(fmt_range.format)
        return None

    def _link_at(self, cursor: QTextCursor) -> str | None:
        position = cursor.position()
        candidates = []
        if not cursor.atBlockStart():
            candidates.append(position - 1)
        if not cursor.atBlockEnd():
            candidates.append(position)
        for candidate in candidates:
            fmt = self.format_at(candidate)
            if fmt is not None and fmt.hasProperty(LINK_PROPERTY):
                return str(fmt.property(LINK_PROPERTY))
        return None

    def activate_link_at(self, offset: int) -> bool:
        cursor = QTextCursor(self.document())
        cursor.setPosition(max(0, min(int(offset), self.document().characterCount() - 1)))
        url = self._link_at(cursor)
        if not url:
            return False
        self.linkActivated.emit(url)
        self._controller.pipeline.activate_link(url)
        return True

    def mouseMoveEvent(self, e):
        over_link = False
        if e.modifiers() & Qt.ControlModifier:
            cursor = self.cursorForPosition(e.position().toPoint())
            over_link = self._link_at(cursor) is not None
        self.viewport().setCursor(Qt.PointingHandCursor if over_link else Qt.IBeamCursor)
        super().mouseMoveEvent(e)

    def mousePressEvent(self, e):
        if e.button() == Qt.LeftButton and (e.modifiers() & Qt.ControlModifier):
            cursor = self.cursorForPosition(e.position().toPoint())
            if self.activate_link_at(cursor.position()):
                e.accept()
                return
        super().mousePressEvent(e)

    def closeEvent(self, event):
        self._auto_save_timer.stop()
        self._controller.cancel_pending()
        super().closeEvent(event)
