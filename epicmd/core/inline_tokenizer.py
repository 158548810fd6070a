"""Single-line inline tokenizer.

Scans a line left to right and, at every position, tries the span openers in
a fixed order::

    1. **bold**
    2. *italic*
    3. [label](url)
    4. `code`
    5. plain text

The first opener that closes on the same line wins. Openers that never close
are kept as plain text, and neighbouring plain text is merged, so joining
``span.raw`` over the result always gives back the input line.
"""

from __future__ import annotations

from epicmd.core.markdown_model import Bold, Code, Italic, Link, Plain, Span

_OPENERS = frozenset("*[`")


def _match_bold(line: str, pos: int) -> tuple[Bold, int] | None:
    # Closing "**" is searched one char past the opener, so content is never empty.
    close = line.find("**", pos + 3)
    if close < 0:
        return None
    return Bold(line[pos + 2:close]), close + 2


def _match_italic(line: str, pos: int) -> tuple[Italic, int] | None:
    close = line.find("*", pos + 1)
    if close <= pos + 1:
        return None
    return Italic(line[pos + 1:close]), close + 1


def _match_link(line: str, pos: int) -> tuple[Link, int] | None:
    label_end = line.find("]", pos + 1)
    if label_end <= pos + 1:
        return None
    if not line.startswith("(", label_end + 1):
        return None
    url_end = line.find(")", label_end + 2)
    if url_end <= label_end + 2:
        return None
    return Link(line[pos + 1:label_end], line[label_end + 2:url_end]), url_end + 1


def _match_code(line: str, pos: int) -> tuple[Code, int] | None:
    close = line.find("`", pos + 1)
    if close <= pos + 1:
        return None
    return Code(line[pos + 1:close]), close + 1


def tokenize(line: str) -> tuple[Span, ...]:
    """Splits one line into spans. Never raises; bad markup degrades to Plain."""
    text = str(line or "")
    spans: list[Span] = []
    plain: list[str] = []
    pos = 0
    length = len(text)

    def flush_plain() -> None:
        if plain:
            spans.append(Plain("".join(plain)))
            plain.clear()

    while pos < length:
        char = text[pos]
        if char not in _OPENERS:
            run_end = pos + 1
            while run_end < length and text[run_end] not in _OPENERS:
                run_end += 1
            plain.append(text[pos:run_end])
            pos = run_end
            continue

        matched: tuple[Span, int] | None = None
        if char == "*":
            if text.startswith("**", pos):
                matched = _match_bold(text, pos)
                if matched is None:
                    # An unclosed "**" is never re-read as an italic opener.
                    plain.append("**")
                    pos += 2
                    continue
            else:
                matched = _match_italic(text, pos)
        elif char == "[":
            matched = _match_link(text, pos)
        elif char == "`":
            matched = _match_code(text, pos)

        if matched is None:
            plain.append(char)
            pos += 1
            continue

        flush_plain()
        span, pos = matched
        spans.append(span)

    flush_plain()
    return tuple(spans)
