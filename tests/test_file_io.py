"""Tests for markdown file reading and writing."""

from pathlib import Path

import pytest

from epicmd.services.file_io import MarkdownFileError, read_markdown, write_markdown


class TestReadMarkdown:
    def test_line_endings_are_normalized(self, tmp_path: Path):
        path = tmp_path / "doc.md"
        path.write_bytes(b"# T\r\nline\rmore\n")
        assert read_markdown(path) == "# T\nline\nmore\n"

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(MarkdownFileError) as excinfo:
            read_markdown(tmp_path / "nope.md")
        assert excinfo.value.kind == "not_found"

    def test_invalid_utf8(self, tmp_path: Path):
        path = tmp_path / "bad.md"
        path.write_bytes(b"\xff\xfe\xfa")
        with pytest.raises(MarkdownFileError) as excinfo:
            read_markdown(path)
        assert excinfo.value.kind == "decode"


class TestWriteMarkdown:
    def test_text_is_written_verbatim(self, tmp_path: Path):
        path = tmp_path / "out.md"
        write_markdown(path, "a\nb\r\nc")
        assert path.read_bytes() == b"a\nb\r\nc"

    def test_unicode_round_trip(self, tmp_path: Path):
        path = tmp_path / "out.md"
        write_markdown(path, "café • item")
        assert read_markdown(path) == "café • item"

    def test_creates_parent_directories(self, tmp_path: Path):
        path = tmp_path / "a" / "b" / "out.md"
        write_markdown(path, "x")
        assert path.read_text(encoding="utf-8") == "x"

    def test_backup(self, tmp_path: Path):
        path = tmp_path / "out.md"
        path.write_text("old", encoding="utf-8")
        write_markdown(path, "new", create_backup=True)
        assert path.read_text(encoding="utf-8") == "new"
        assert (tmp_path / "out.md.bak").read_text(encoding="utf-8") == "old"

    def test_no_temp_files_left(self, tmp_path: Path):
        write_markdown(tmp_path / "out.md", "x")
        assert [p.name for p in tmp_path.iterdir()] == ["out.md"]

    def test_write_failure(self, tmp_path: Path):
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        with pytest.raises(MarkdownFileError) as excinfo:
            write_markdown(blocker / "out.md", "x")
        assert excinfo.value.kind == "write"
