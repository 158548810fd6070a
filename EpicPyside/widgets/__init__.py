"""Reusable PySide widgets for markdown editing."""

from .markdown_editor import MarkdownEditorWidget
from .markdown_preview import MarkdownPreviewWidget

__all__ = ["MarkdownEditorWidget", "MarkdownPreviewWidget"]
