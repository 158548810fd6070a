"""Debounced re-render loop for the live editing surface.

State cycle::

    IDLE -> DIRTY -> ARMED -> RENDERING -> IDLE

Every edit (re)starts a single-shot timer, so a burst of edits produces one
render measured from the last edit. While a render rewrites the surface,
edit notifications are ignored so the rewrite is never seen as a user edit.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Callable, Protocol

from PySide6.QtCore import QObject, Qt, QTimer, Signal

from epicmd.core.render_pipeline import RenderMode, RenderPipeline, StyledTree
from epicmd.settings_models import DEFAULT_RENDER_DEBOUNCE_MS, RenderStyle

logger = logging.getLogger(__name__)


class EditState(str, enum.Enum):
    IDLE = "idle"
    DIRTY = "dirty"
    ARMED = "armed"
    RENDERING = "rendering"


@dataclass(slots=True)
class EditSession:
    caret_offset: int = 0
    dirty: bool = False
    armed: bool = False
    rendering: bool = False

    def reset(self) -> None:
        self.caret_offset = 0
        self.dirty = False
        self.armed = False
        self.rendering = False


class EditSurface(Protocol):
    def plain_text(self) -> str: ...

    def caret_offset(self) -> int: ...

    def apply_tree(self, tree: StyledTree) -> None: ...

    def set_caret_offset(self, offset: int) -> bool: ...

    def reset_history(self) -> None: ...


class LiveUpdateController(QObject):
    contentDirty = Signal()
    renderCompleted = Signal(object)  # StyledTree
    modifiedChanged = Signal(bool)

    def __init__(
        self,
        surface: EditSurface,
        style: RenderStyle | None = None,
        *,
        debounce_ms: int = DEFAULT_RENDER_DEBOUNCE_MS,
        base_dir: str | None = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._surface = surface
        self._pipeline = RenderPipeline(style, base_dir=base_dir)
        self._session = EditSession()
        self._state = EditState.IDLE
        self._last_tree: StyledTree | None = None

        self._render_timer = QTimer(self)
        self._render_timer.setSingleShot(True)
        self._render_timer.setTimerType(Qt.PreciseTimer)
        self._render_timer.setInterval(max(0, int(debounce_ms)))
        self._render_timer.timeout.connect(self._on_render_timer)

    # ---------- state ----------
    @property
    def state(self) -> EditState:
        return self._state

    @property
    def session(self) -> EditSession:
        return self._session

    @property
    def is_dirty(self) -> bool:
        return self._session.dirty

    @property
    def is_armed(self) -> bool:
        return self._session.armed

    @property
    def pipeline(self) -> RenderPipeline:
        return self._pipeline

    @property
    def style(self) -> RenderStyle:
        return self._pipeline.style

    @property
    def base_dir(self) -> str | None:
        return self._pipeline.base_dir

    @property
    def last_tree(self) -> StyledTree | None:
        return self._last_tree

    def debounce_ms(self) -> int:
        return int(self._render_timer.interval())

    def set_debounce_ms(self, value: int) -> None:
        self._render_timer.setInterval(max(0, int(value)))

    # ---------- callbacks ----------
    def on_content_changed(self, callback: Callable[[], None]) -> None:
        self.contentDirty.connect(callback)

    def on_render_completed(self, callback: Callable[[StyledTree], None]) -> None:
        self.renderCompleted.connect(callback)

    # ---------- edits ----------
    def notify_edit(self) -> None:
        if self._session.rendering:
            logger.debug("Ignoring edit notification raised by a render")
            return
        self._state = EditState.DIRTY
        self._set_dirty(True)
        self.contentDirty.emit()
        self._arm()

    def _arm(self) -> None:
        # QTimer.start() on an active timer restarts the full interval.
        self._render_timer.start()
        self._session.armed = True
        self._state = EditState.ARMED

    def cancel_pending(self) -> None:
        if not self._session.armed:
            return
        self._render_timer.stop()
        self._session.armed = False
        self._state = EditState.DIRTY if self._session.dirty else EditState.IDLE

    def _on_render_timer(self) -> None:
        self._session.armed = False
        self.render_now()

    def _set_dirty(self, dirty: bool) -> None:
        if self._session.dirty == dirty:
            return
        self._session.dirty = dirty
        self.modifiedChanged.emit(dirty)

    # ---------- rendering ----------
    def render_now(self) -> StyledTree | None:
        """Re-segments and re-renders the full surface text immediately."""
        if self._session.rendering:
            return None
        self._render_timer.stop()
        self._session.armed = False

        caret = self._surface.caret_offset()
        self._session.caret_offset = caret
        tree = self._apply_text(self._surface.plain_text())
        self._restore_caret(caret)
        self.renderCompleted.emit(tree)
        return tree

    def _apply_text(self, text: str) -> StyledTree:
        self._session.rendering = True
        self._state = EditState.RENDERING
        try:
            tree = self._pipeline.render_text(text, RenderMode.LIVE_EDIT)
            self._surface.apply_tree(tree)
        finally:
            self._session.rendering = False
            self._state = EditState.IDLE
        self._last_tree = tree
        return tree

    def _restore_caret(self, offset: int) -> None:
        end = len(self._surface.plain_text())
        if 0 <= offset <= end and self._surface.set_caret_offset(offset):
            return
        logger.debug("Caret offset %d invalid after render, moving to end (%d)", offset, end)
        self._surface.set_caret_offset(end)
        self._session.caret_offset = end

    def render_preview(self) -> StyledTree:
        return self._pipeline.render_text(self._surface.plain_text(), RenderMode.PREVIEW)

    # ---------- collaborators ----------
    def load_text(self, content: str) -> StyledTree:
        """Replaces the content and renders immediately.

        The result is clean and the surface keeps no undo history from before
        the load.
        """
        self._render_timer.stop()
        self._session.reset()
        tree = self._apply_text(str(content or ""))
        self._surface.set_caret_offset(0)
        self._surface.reset_history()
        self.modifiedChanged.emit(False)
        self.renderCompleted.emit(tree)
        return tree

    def new_file(self) -> None:
        self.load_text("")

    def set_style(self, style: RenderStyle) -> StyledTree | None:
        """Applies a new style and re-renders; the dirty flag is left alone."""
        self._pipeline.set_style(style)
        return self.render_now()

    def set_base_dir(self, base_dir: str | None) -> None:
        self._pipeline.set_base_dir(base_dir)

    def get_plain_text(self) -> str:
        return self._surface.plain_text()

    def mark_saved(self) -> None:
        self._set_dirty(False)
