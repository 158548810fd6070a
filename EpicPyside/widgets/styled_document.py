"""Turns a render-pipeline StyledTree into QTextDocument content or formats."""

from __future__ import annotations

from PySide6.QtGui import (
    QColor,
    QFont,
    QPalette,
    QSyntaxHighlighter,
    QTextBlockFormat,
    QTextCharFormat,
    QTextCursor,
    QTextDocument,
    QTextFormat,
    QTextImageFormat,
)
from PySide6.QtWidgets import QAbstractScrollArea

from epicmd.core.render_pipeline import StyledLine, StyledRun, StyledTree

LINK_PROPERTY = QTextFormat.UserProperty + 1
IMAGE_PATH_PROPERTY = QTextFormat.UserProperty + 2
IMAGE_SOURCE_PROPERTY = QTextFormat.UserProperty + 3
IMAGE_CLICKABLE_PROPERTY = QTextFormat.UserProperty + 4


def char_format_for_run(run: StyledRun) -> QTextCharFormat:
    fmt = QTextCharFormat()
    fmt.setForeground(QColor(run.color))
    fmt.setFontPointSize(float(run.font_size))
    fmt.setFontWeight(QFont.Bold if run.bold else QFont.Normal)
    fmt.setFontItalic(bool(run.italic))
    fmt.setFontUnderline(bool(run.underline))
    if run.background:
        fmt.setBackground(QColor(run.background))
    if run.font_family:
        fmt.setFontFamily(run.font_family)
    if run.link_url:
        fmt.setAnchor(True)
        fmt.setAnchorHref(run.link_url)
        fmt.setProperty(LINK_PROPERTY, run.link_url)
    return fmt


def image_format_for_run(run: StyledRun) -> QTextImageFormat:
    image = run.image
    fmt = QTextImageFormat()
    if image is None:
        return fmt
    fmt.setName(image.path)
    fmt.setWidth(image.width)
    fmt.setHeight(image.height)
    fmt.setProperty(IMAGE_PATH_PROPERTY, image.path)
    fmt.setProperty(IMAGE_SOURCE_PROPERTY, image.source_path)
    fmt.setProperty(IMAGE_CLICKABLE_PROPERTY, bool(image.clickable))
    return fmt


def block_format_for_line(line: StyledLine) -> QTextBlockFormat:
    fmt = QTextBlockFormat()
    fmt.setTopMargin(float(line.top_margin))
    fmt.setBottomMargin(float(line.bottom_margin))
    return fmt


def write_styled_tree(document: QTextDocument, tree: StyledTree) -> None:
    """Replaces the document content with one text block per styled line.

    Used by the read-only preview; the live editor paints through
    :class:`StyledTreeHighlighter` instead.
    """
    font = QFont(tree.font_family)
    font.setPointSizeF(float(tree.font_size))
    document.setDefaultFont(font)

    cursor = QTextCursor(document)
    cursor.beginEditBlock()
    cursor.select(QTextCursor.SelectionType.Document)
    cursor.removeSelectedText()

    for index, line in enumerate(tree.lines):
        block_fmt = block_format_for_line(line)
        if index == 0:
            cursor.setBlockFormat(block_fmt)
            cursor.setBlockCharFormat(QTextCharFormat())
        else:
            cursor.insertBlock(block_fmt, QTextCharFormat())
        for run in line.runs:
            if run.image is not None:
                cursor.insertImage(image_format_for_run(run))
            elif run.text:
                cursor.insertText(run.text, char_format_for_run(run))
    cursor.endEditBlock()


def apply_tree_palette(widget: QAbstractScrollArea, tree: StyledTree) -> None:
    background = QColor(tree.background)
    foreground = QColor(tree.foreground)
    palette = widget.palette()
    palette.setColor(QPalette.Base, background)
    palette.setColor(QPalette.Window, background)
    palette.setColor(QPalette.Text, foreground)
    widget.setPalette(palette)

    viewport = widget.viewport()
    if viewport is not None:
        vp = viewport.palette()
        vp.setColor(QPalette.Base, background)
        vp.setColor(QPalette.Window, background)
        vp.setColor(QPalette.Text, foreground)
        viewport.setPalette(vp)


def _utf16_len(text: str) -> int:
    return len(text.encode("utf-16-le")) // 2


class StyledTreeHighlighter(QSyntaxHighlighter):
    """Paints a Live-Edit StyledTree over a document without editing it.

    Formats land in the block layouts, so they never create undo steps or
    change signals. A block whose text no longer matches its styled line is
    left unformatted until the next tree arrives.
    """

    def __init__(self, document: QTextDocument):
        super().__init__(document)
        self._tree: StyledTree | None = None

    @property
    def tree(self) -> StyledTree | None:
        return self._tree

    def set_tree(self, tree: StyledTree | None) -> None:
        self._tree = tree
        self.rehighlight()

    def highlightBlock(self, text: str) -> None:
        tree = self._tree
        index = self.currentBlock().blockNumber()
        if tree is None or index < 0 or index >= len(tree.lines):
            return
        line = tree.lines[index]
        if line.text != text:
            return
        offset = 0
        for run in line.runs:
            length = _utf16_len(run.text)
            if length:
                self.setFormat(offset, length, char_format_for_run(run))
            offset += length
