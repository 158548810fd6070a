"""Span/block value types produced by the tokenizer and segmenter."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Iterator


# ---------------- Spans ----------------


@dataclass(frozen=True, slots=True)
class Plain:
    text: str
    kind: ClassVar[str] = "plain"

    @property
    def raw(self) -> str:
        return self.text


@dataclass(frozen=True, slots=True)
class Bold:
    text: str
    kind: ClassVar[str] = "bold"

    @property
    def raw(self) -> str:
        return f"**{self.text}**"


@dataclass(frozen=True, slots=True)
class Italic:
    text: str
    kind: ClassVar[str] = "italic"

    @property
    def raw(self) -> str:
        return f"*{self.text}*"


@dataclass(frozen=True, slots=True)
class Code:
    text: str
    kind: ClassVar[str] = "code"

    @property
    def raw(self) -> str:
        return f"`{self.text}`"


@dataclass(frozen=True, slots=True)
class Link:
    text: str
    url: str
    kind: ClassVar[str] = "link"

    @property
    def raw(self) -> str:
        return f"[{self.text}]({self.url})"


Span = Plain | Bold | Italic | Code | Link


def spans_source(spans: tuple[Span, ...]) -> str:
    return "".join(span.raw for span in spans)


def spans_text(spans: tuple[Span, ...]) -> str:
    return "".join(span.text for span in spans)


# ---------------- Blocks ----------------


@dataclass(frozen=True, slots=True)
class Heading:
    level: int
    spans: tuple[Span, ...] = ()
    kind: ClassVar[str] = "heading"

    def __post_init__(self) -> None:
        if self.level not in (1, 2, 3):
            raise ValueError(f"Heading level must be 1, 2 or 3, got {self.level!r}.")

    @property
    def marker(self) -> str:
        return "#" * self.level + " "

    @property
    def source(self) -> str:
        return self.marker + spans_source(self.spans)


@dataclass(frozen=True, slots=True)
class Paragraph:
    spans: tuple[Span, ...] = ()
    kind: ClassVar[str] = "paragraph"

    @property
    def source(self) -> str:
        return spans_source(self.spans)


@dataclass(frozen=True, slots=True)
class ListItem:
    indent_level: int
    spans: tuple[Span, ...] = ()
    # Raw leading whitespace + marker + separator, e.g. "\t- " or "1. ".
    prefix: str = "- "

    def __post_init__(self) -> None:
        if self.indent_level < 0:
            raise ValueError("List indent level cannot be negative.")

    @property
    def source(self) -> str:
        return self.prefix + spans_source(self.spans)


@dataclass(frozen=True, slots=True)
class ListBlock:
    items: tuple[ListItem, ...] = ()
    kind: ClassVar[str] = "list"

    @property
    def source(self) -> str:
        return "\n".join(item.source for item in self.items)


@dataclass(frozen=True, slots=True)
class ImageRef:
    path: str
    width_px: int | None = None
    source: str = ""
    kind: ClassVar[str] = "image"

    def __post_init__(self) -> None:
        if self.width_px is not None and self.width_px <= 0:
            raise ValueError("Image width must be a positive integer.")
        if not self.source:
            suffix = f"|{self.width_px}px" if self.width_px else ""
            object.__setattr__(self, "source", f"![]({self.path}){suffix}")


@dataclass(frozen=True, slots=True)
class BlankLine:
    text: str = ""
    kind: ClassVar[str] = "blank"

    @property
    def source(self) -> str:
        return self.text


Block = Heading | Paragraph | ListBlock | ImageRef | BlankLine


@dataclass(frozen=True, slots=True)
class Document:
    blocks: tuple[Block, ...] = field(default_factory=tuple)

    def __iter__(self) -> Iterator[Block]:
        return iter(self.blocks)

    def __len__(self) -> int:
        return len(self.blocks)

    @property
    def source(self) -> str:
        return "\n".join(block.source for block in self.blocks)

    @property
    def lines(self) -> tuple[str, ...]:
        out: list[str] = []
        for block in self.blocks:
            if isinstance(block, ListBlock):
                out.extend(item.source for item in block.items)
            else:
                out.append(block.source)
        return tuple(out)

    @property
    def line_count(self) -> int:
        return len(self.lines)
