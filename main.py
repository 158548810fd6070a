import logging
import os
import sys
import webbrowser
from pathlib import Path

from PySide6.QtCore import Qt
from PySide6.QtGui import QColor, QPalette
from PySide6.QtWidgets import QApplication, QSplitter

from EpicPyside.widgets import MarkdownEditorWidget, MarkdownPreviewWidget
from epicmd.settings_models import SettingsPaths
from epicmd.settings_store import (
    JsonSettingsStore,
    auto_save_seconds_from_store,
    debounce_ms_from_store,
    render_style_from_store,
)

APP_NAME = "Epic Markdown"
SETTINGS_DIR_ENV = "EPICMD_SETTINGS_DIR"

logger = logging.getLogger(__name__)


def _default_settings_dir() -> Path:
    override = str(os.environ.get(SETTINGS_DIR_ENV) or "").strip()
    if override:
        return Path(override).expanduser()
    return Path.home() / ".epicmd"


def _load_settings_store() -> JsonSettingsStore:
    paths = SettingsPaths(_default_settings_dir())
    store = JsonSettingsStore(paths.settings_file)
    store.load()
    if store.last_error:
        logger.warning("Using default settings: %s", store.last_error)
    return store


def _open_external(url: str) -> None:
    if not webbrowser.open(url):
        logger.info("No browser accepted %s", url)


def _apply_editor_settings(editor: MarkdownEditorWidget, store: JsonSettingsStore) -> None:
    try:
        tab_size = max(1, int(store.get("editor.tab_size", 4)))
    except (TypeError, ValueError):
        tab_size = 4
    editor.setTabStopDistance(editor.fontMetrics().horizontalAdvance(" ") * tab_size)

    selection = QColor(str(store.get("theme.selection_background") or ""))
    if selection.isValid():
        palette = editor.palette()
        palette.setColor(QPalette.Highlight, selection)
        editor.setPalette(palette)


def _build_window(store: JsonSettingsStore) -> QSplitter:
    style = render_style_from_store(store)
    editor = MarkdownEditorWidget(
        style=style,
        debounce_ms=debounce_ms_from_store(store),
        link_handler=_open_external,
        auto_save_seconds=auto_save_seconds_from_store(store),
    )
    preview = MarkdownPreviewWidget(style=style, link_handler=_open_external)
    if not bool(store.get("editor.word_wrap", True)):
        editor.setLineWrapMode(MarkdownEditorWidget.NoWrap)
    _apply_editor_settings(editor, store)

    def _sync_preview(_tree=None) -> None:
        preview.set_markdown(editor.get_plain_text(), editor.controller.base_dir)

    editor.renderCompleted.connect(_sync_preview)

    def _update_title(_value=None) -> None:
        name = Path(editor.file_path).name if editor.file_path else "Untitled"
        marker = "*" if editor.is_dirty() else ""
        splitter.setWindowTitle(f"{APP_NAME} - {name}{marker}")

    splitter = QSplitter(Qt.Horizontal)
    splitter.addWidget(editor)
    splitter.addWidget(preview)
    splitter.setSizes([600, 600])
    editor.modifiedChanged.connect(_update_title)
    editor.filePathChanged.connect(_update_title)
    splitter.editor = editor
    splitter.preview = preview
    _update_title()
    return splitter


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    cli_args = sys.argv[1:]

    app = QApplication([sys.argv[0], *cli_args])
    app.setStyle("Fusion")
    app.setApplicationName(APP_NAME)

    window = _build_window(_load_settings_store())
    if cli_args and not window.editor.load_file(cli_args[0]):
        logger.warning("Starting with an empty document")
    window.resize(1200, 800)
    window.show()
    sys.exit(app.exec())
