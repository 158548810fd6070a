"""Tests for block segmentation."""

import pytest

from epicmd.core.block_segmenter import indent_level, normalize_line_endings, segment, split_lines
from epicmd.core.markdown_model import (
    BlankLine,
    Bold,
    Heading,
    ImageRef,
    Italic,
    ListBlock,
    ListItem,
    Paragraph,
    Plain,
)


class TestSplitLines:
    """Line splitting is line-ending agnostic."""

    def test_mixed_line_endings(self):
        assert split_lines("a\r\nb\rc\nd") == ["a", "b", "c", "d"]

    def test_trailing_newline_gives_trailing_empty_line(self):
        assert split_lines("a\n") == ["a", ""]

    def test_normalize(self):
        assert normalize_line_endings("a\r\n\r\nb\r") == "a\n\nb\n"


class TestIndentLevel:
    @pytest.mark.parametrize(
        "whitespace, expected",
        [("", 0), ("\t", 1), ("    ", 1), ("\t\t", 2), ("\t    ", 2), ("  ", 0), ("      ", 1)],
    )
    def test_indent_units(self, whitespace, expected):
        assert indent_level(whitespace) == expected


class TestSegmentBlocks:
    """Classification of individual lines."""

    def test_plain_lines_become_paragraphs(self):
        doc = segment("first line\nsecond line")
        assert doc.blocks == (
            Paragraph((Plain("first line"),)),
            Paragraph((Plain("second line"),)),
        )

    @pytest.mark.parametrize("level", [1, 2, 3])
    def test_headings(self, level):
        doc = segment("#" * level + " Title **b**")
        (block,) = doc.blocks
        assert isinstance(block, Heading)
        assert block.level == level
        assert block.spans == (Plain("Title "), Bold("b"))

    @pytest.mark.parametrize("line", ["#NoSpace", "#### Four", " # indented"])
    def test_non_headings_are_paragraphs(self, line):
        (block,) = segment(line).blocks
        assert isinstance(block, Paragraph)

    def test_list_items_grouped_with_indent(self):
        doc = segment("- top\n\t- child")
        (block,) = doc.blocks
        assert isinstance(block, ListBlock)
        assert [item.indent_level for item in block.items] == [0, 1]
        assert block.items[0].spans == (Plain("top"),)
        assert block.items[1].prefix == "\t- "

    def test_list_markers(self):
        doc = segment("- a\n* b\n1. c\n    - *d*")
        (block,) = doc.blocks
        assert [item.spans for item in block.items] == [
            (Plain("a"),),
            (Plain("b"),),
            (Plain("c"),),
            (Italic("d"),),
        ]
        assert block.items[3].indent_level == 1

    def test_list_is_closed_by_other_block(self):
        doc = segment("- a\ntext\n- b")
        assert [type(block) for block in doc.blocks] == [ListBlock, Paragraph, ListBlock]

    def test_dash_without_space_is_paragraph(self):
        (block,) = segment("-not a list").blocks
        assert isinstance(block, Paragraph)

    def test_image_line(self):
        (block,) = segment("![alt](img/pic.png)|250px").blocks
        assert block == ImageRef(path="img/pic.png", width_px=250, source="![alt](img/pic.png)|250px")

    def test_image_without_width(self):
        (block,) = segment("![](pic.png)").blocks
        assert block.path == "pic.png"
        assert block.width_px is None

    def test_zero_width_is_ignored(self):
        (block,) = segment("![](pic.png)|0px").blocks
        assert isinstance(block, ImageRef)
        assert block.width_px is None

    def test_image_must_fill_the_line(self):
        (block,) = segment("look ![](pic.png) here").blocks
        assert isinstance(block, Paragraph)

    def test_blank_lines_are_kept(self):
        doc = segment("a\n\n  \nb")
        assert doc.blocks[1] == BlankLine("")
        assert doc.blocks[2] == BlankLine("  ")
        assert len(doc) == 4

    def test_empty_text_is_one_blank_line(self):
        assert segment("").blocks == (BlankLine(""),)


class TestSegmentRoundTrip:
    """Every source line lands in exactly one block."""

    @pytest.mark.parametrize(
        "text",
        [
            "# Title\n\nSome **bold** text\n- a\n\t- b\n![](x.png)|10px\n",
            "\n\nleading blanks",
            "1. one\n2. two\n\n## Sub *it*",
        ],
    )
    def test_source_reconstructs_text(self, text):
        doc = segment(text)
        assert doc.source == text
        assert doc.lines == tuple(split_lines(text))
        assert doc.line_count == len(split_lines(text))

    def test_crlf_source_is_normalized(self):
        assert segment("a\r\n- b\r\n").source == "a\n- b\n"


class TestModelValidation:
    def test_heading_level_out_of_range(self):
        with pytest.raises(ValueError):
            Heading(level=4)

    def test_negative_indent(self):
        with pytest.raises(ValueError):
            ListItem(indent_level=-1)

    def test_non_positive_image_width(self):
        with pytest.raises(ValueError):
            ImageRef(path="a.png", width_px=0)

    def test_image_source_is_synthesized(self):
        assert ImageRef(path="a.png", width_px=20).source == "![](a.png)|20px"
