"""Line-based block segmentation for the markdown dialect."""

from __future__ import annotations

import re

from epicmd.core.inline_tokenizer import tokenize
from epicmd.core.markdown_model import (
    BlankLine,
    Block,
    Document,
    Heading,
    ImageRef,
    ListBlock,
    ListItem,
    Paragraph,
)

LINE_BREAK_PATTERN = re.compile(r"\r\n|\r|\n")
IMAGE_LINE_PATTERN = re.compile(
    r"^\s*!\[(?P<alt>[^\]]*)\]\((?P<path>[^)]+)\)(?:\|(?P<width>\d+)px)?\s*$"
)
LIST_ITEM_PATTERN = re.compile(r"^(?P<indent>[ \t]*)(?P<marker>[-*]|\d+\.) [ \t]*")
_HEADING_PREFIXES = (("# ", 1), ("## ", 2), ("### ", 3))


def split_lines(text: str) -> list[str]:
    """Splits on \\r\\n, \\r and \\n, including mixed endings in one text."""
    return LINE_BREAK_PATTERN.split(str(text or ""))


def normalize_line_endings(text: str) -> str:
    return "\n".join(split_lines(text))


def indent_level(whitespace: str) -> int:
    """Counts indent units: a tab is one, a full group of four spaces is one."""
    level = 0
    idx = 0
    length = len(whitespace)
    while idx < length:
        if whitespace[idx] == "\t":
            level += 1
            idx += 1
        elif whitespace.startswith("    ", idx):
            level += 1
            idx += 4
        else:
            break
    return level


def parse_image_line(line: str) -> ImageRef | None:
    m = IMAGE_LINE_PATTERN.match(line)
    if not m:
        return None
    path = m.group("path").strip()
    if not path:
        return None
    width: int | None = None
    if m.group("width"):
        try:
            width = int(m.group("width"))
        except ValueError:
            width = None
        if width is not None and width <= 0:
            width = None
    return ImageRef(path=path, width_px=width, source=line)


def parse_heading_line(line: str) -> Heading | None:
    for prefix, level in _HEADING_PREFIXES:
        if line.startswith(prefix):
            return Heading(level=level, spans=tokenize(line[len(prefix):]))
    return None


def parse_list_item(line: str) -> ListItem | None:
    m = LIST_ITEM_PATTERN.match(line)
    if not m:
        return None
    prefix = m.group(0)
    return ListItem(
        indent_level=indent_level(m.group("indent")),
        spans=tokenize(line[len(prefix):]),
        prefix=prefix,
    )


def segment(text: str) -> Document:
    """Groups a document's lines into blocks, in source order.

    Every source line lands in exactly one block (list lines inside a
    ``ListBlock``), so ``Document.source`` reproduces the input with
    line endings normalized to ``\\n``.
    """
    blocks: list[Block] = []
    pending_items: list[ListItem] = []

    def close_list() -> None:
        if pending_items:
            blocks.append(ListBlock(items=tuple(pending_items)))
            pending_items.clear()

    for line in split_lines(text):
        image = parse_image_line(line)
        if image is not None:
            close_list()
            blocks.append(image)
            continue

        heading = parse_heading_line(line)
        if heading is not None:
            close_list()
            blocks.append(heading)
            continue

        item = parse_list_item(line)
        if item is not None:
            pending_items.append(item)
            continue

        close_list()
        if not line.strip():
            blocks.append(BlankLine(text=line))
        else:
            blocks.append(Paragraph(spans=tokenize(line)))

    close_list()
    return Document(blocks=tuple(blocks))
