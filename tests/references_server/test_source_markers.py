"""Tests for usage marker generation and the file contents cache."""

import logging
import tempfile
from pathlib import Path

from fakes import FakeUnsavedFiles

from xrefmcp.references_server.models import CursorLocation, SourceMarkerType
from xrefmcp.references_server.tools.source_markers import (
    FileContentsCache,
    SourceMarkerGenerator,
    html_message,
)


class TestHtmlMessage:
    """Test highlighting of the referenced token within its line."""

    def test_highlights_token(self):
        """Test that the token is wrapped in <strong>."""
        loc = CursorLocation("main.c", 1, 5, 3)

        assert html_message(loc, "int foo = 1;") == "int <strong>foo</strong> = 1;"

    def test_token_at_line_end(self):
        """Test that a token ending exactly at the end of the line is highlighted."""
        loc = CursorLocation("main.ts", 1, 8, 3)

        assert html_message(loc, "return foo") == "return <strong>foo</strong>"

    def test_zero_extent_highlights_whole_line(self):
        """Test that an unknown extent highlights the entire line."""
        loc = CursorLocation("main.c", 1, 5, 0)

        assert html_message(loc, "int foo = 1;") == "<strong>int foo = 1;</strong>"

    def test_zero_extent_past_line_end(self):
        """Test that an unknown extent highlights the line whatever the column."""
        loc = CursorLocation("main.c", 1, 40, 0)

        assert html_message(loc, "a < b") == "<strong>a &lt; b</strong>"

    def test_extent_past_line_end_is_plain(self):
        """Test that an extent running past the line leaves it unhighlighted."""
        loc = CursorLocation("main.c", 1, 10, 8)

        assert html_message(loc, "int foo = 1;") == "int foo = 1;"

    def test_escapes_surrounding_text(self):
        """Test that markup characters are escaped on both sides of the token."""
        loc = CursorLocation("main.ts", 1, 9, 1)

        assert html_message(loc, "if (a < b && c > d)") == "if (a &lt; <strong>b</strong> &amp;&amp; c &gt; d)"

    def test_escapes_highlighted_text(self):
        """Test that the highlighted token itself is escaped."""
        loc = CursorLocation("main.ts", 1, 5, 3)

        assert html_message(loc, "x = <T>y") == "x = <strong>&lt;T&gt;</strong>y"


class TestSourceMarkerGenerator:
    """Test conversion of reference locations into markers."""

    def test_one_marker_per_location(self):
        """Test that markers keep the order, position and type of the locations."""
        unsaved = FakeUnsavedFiles({"/src/main.c": "int foo = 1;\nint bar = foo;\n"})
        generator = SourceMarkerGenerator(unsaved)
        locations = [CursorLocation("/src/main.c", 1, 5, 3), CursorLocation("/src/main.c", 2, 11, 3)]

        markers = generator.markers_for_cursor_locations(locations)

        assert [(m.line, m.column) for m in markers] == [(1, 5), (2, 11)]
        assert markers[0].message == "int <strong>foo</strong> = 1;"
        assert markers[1].message == "int bar = <strong>foo</strong>;"
        assert all(m.type == SourceMarkerType.USAGE for m in markers)
        assert all(m.message_is_html for m in markers)
        assert all(m.file_path == "/src/main.c" for m in markers)

    def test_line_out_of_range_gives_empty_message(self):
        """Test that a location past the end of the file still yields a marker."""
        unsaved = FakeUnsavedFiles({"/src/main.c": "int foo = 1;"})
        generator = SourceMarkerGenerator(unsaved)

        markers = generator.markers_for_cursor_locations([CursorLocation("/src/main.c", 7, 1, 3)])

        assert len(markers) == 1
        assert markers[0].message == ""
        assert markers[0].line == 7

    def test_unreadable_file_gives_empty_message(self):
        """Test that a missing file yields markers with empty messages."""
        with tempfile.TemporaryDirectory() as temp_dir:
            missing = str(Path(temp_dir) / "gone.ts")
            generator = SourceMarkerGenerator(FakeUnsavedFiles())

            markers = generator.markers_for_cursor_locations(
                [CursorLocation(missing, 1, 1, 3), CursorLocation(missing, 2, 1, 3)]
            )

            assert [m.message for m in markers] == ["", ""]

    def test_empty_locations(self):
        """Test that no locations yield no markers."""
        generator = SourceMarkerGenerator(FakeUnsavedFiles())

        assert generator.markers_for_cursor_locations([]) == []

    def test_file_loaded_once(self):
        """Test that several locations in one file share one cached read."""
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "main.ts"
            path.write_text("const a = 1;\nconst b = a;\n", encoding="utf-8")
            generator = SourceMarkerGenerator(FakeUnsavedFiles())

            first = generator.markers_for_cursor_locations([CursorLocation(str(path), 1, 7, 1)])
            path.write_text("changed\n", encoding="utf-8")
            second = generator.markers_for_cursor_locations([CursorLocation(str(path), 2, 11, 1)])

            assert first[0].message == "const <strong>a</strong> = 1;"
            assert second[0].message == "const b = <strong>a</strong>;"


class TestFileContentsCache:
    """Test line loading and caching of source files."""

    def test_unsaved_buffer_wins_over_disk(self):
        """Test that unsaved contents are used even when the file exists on disk."""
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "main.ts"
            path.write_text("on disk\n", encoding="utf-8")
            cache = FileContentsCache(FakeUnsavedFiles({str(path): "in editor\nsecond"}))

            assert cache.lines_of(str(path)) == ["in editor", "second"]

    def test_unsaved_buffer_split_on_newline(self):
        """Test that a trailing newline keeps an empty last line."""
        cache = FileContentsCache(FakeUnsavedFiles({"/src/a.ts": "a\nb\n"}))

        assert cache.lines_of("/src/a.ts") == ["a", "b", ""]

    def test_disk_file_split_into_lines(self):
        """Test that disk content is split on newlines with carriage returns dropped."""
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "main.ts"
            path.write_bytes(b"first\r\nsecond\nthird")
            cache = FileContentsCache(FakeUnsavedFiles())

            assert cache.lines_of(str(path)) == ["first", "second", "third"]

    def test_other_separators_stay_in_line(self):
        """Test that form feeds and Unicode separators do not start a new line."""
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "main.ts"
            path.write_bytes("// section\x0c\nconst beta = 1;\u2028x\nbeta;".encode())
            cache = FileContentsCache(FakeUnsavedFiles())

            assert cache.lines_of(str(path)) == ["// section\x0c", "const beta = 1;\u2028x", "beta;"]

    def test_non_ascii_utf8(self):
        """Test that UTF-8 content is decoded as such."""
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "main.ts"
            path.write_bytes('const s = "héllo";\n'.encode())
            cache = FileContentsCache(FakeUnsavedFiles())

            assert cache.lines_of(str(path)) == ['const s = "héllo";', ""]

    def test_same_lines_returned_after_disk_change(self):
        """Test that a file is read once and the same lines object is returned."""
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "main.ts"
            path.write_text("before\n", encoding="utf-8")
            cache = FileContentsCache(FakeUnsavedFiles())

            first = cache.lines_of(str(path))
            path.write_text("after\n", encoding="utf-8")
            second = cache.lines_of(str(path))

            assert second is first
            assert second == ["before", ""]

    def test_missing_file_cached_as_empty(self, caplog):
        """Test that a read failure is logged once and cached as no lines."""
        with tempfile.TemporaryDirectory() as temp_dir:
            missing = str(Path(temp_dir) / "missing.ts")
            cache = FileContentsCache(FakeUnsavedFiles())

            with caplog.at_level(logging.ERROR):
                assert cache.lines_of(missing) == []
                Path(missing).write_text("now exists\n", encoding="utf-8")
                assert cache.lines_of(missing) == []

            assert missing in cache
            errors = [record for record in caplog.records if record.levelno == logging.ERROR]
            assert len(errors) == 1
            assert missing in errors[0].getMessage()
