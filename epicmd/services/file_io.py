"""Markdown file read/write helpers.

Reads are line-ending agnostic (``\\r\\n``, ``\\r`` and ``\\n`` all become
``\\n``); writes store the text verbatim with no newline translation.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from epicmd.core.block_segmenter import normalize_line_endings

logger = logging.getLogger(__name__)


class MarkdownFileError(RuntimeError):
    def __init__(self, message: str, *, kind: str = "io_error") -> None:
        super().__init__(message)
        self.kind = kind


def read_markdown(path: str | Path, *, encoding: str = "utf-8") -> str:
    target = Path(path)
    try:
        with target.open("r", encoding=encoding, newline="") as handle:
            raw = handle.read()
    except FileNotFoundError:
        raise MarkdownFileError(f"File not found: {target}", kind="not_found") from None
    except UnicodeDecodeError as exc:
        raise MarkdownFileError(f"File is not valid {encoding}: {target}", kind="decode") from exc
    except OSError as exc:
        raise MarkdownFileError(f"Could not read '{target}': {exc}") from exc
    logger.info("Loaded %s (%d chars)", target, len(raw))
    return normalize_line_endings(raw)


def atomic_write_text(
    path: str | Path,
    text: str,
    *,
    encoding: str = "utf-8",
    create_backup: bool = False,
) -> None:
    target = Path(path)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)

        if create_backup and target.exists():
            backup = target.with_suffix(target.suffix + ".bak")
            backup.write_bytes(target.read_bytes())

        fd, tmp_path = tempfile.mkstemp(prefix=target.name + ".", suffix=".tmp", dir=str(target.parent))
        try:
            with os.fdopen(fd, "w", encoding=encoding, newline="") as handle:
                handle.write(text)
            os.replace(tmp_path, target)
        finally:
            if os.path.exists(tmp_path):
                try:
                    os.unlink(tmp_path)
                except OSError:
                    pass
    except OSError as exc:
        raise MarkdownFileError(f"Could not write '{target}': {exc}", kind="write") from exc
    logger.info("Saved %s (%d chars)", target, len(text))


def write_markdown(path: str | Path, text: str, *, create_backup: bool = False) -> None:
    atomic_write_text(path, str(text or ""), create_backup=create_backup)
