"""
Unit tests for the unified diff parser.
"""

import random

import pytest

from app.models.diff import FileStatus, LineChangeKind, ReviewStatus
from app.services.diff_parser import DiffParseError, DiffParser, parse_diff


def test_parse_sample_diff_chunk_layout(sample_diff):
    """Test that every (file, hunk) pair becomes one chunk in diff order."""
    chunks = parse_diff(sample_diff)

    assert [(c.file_path, c.new_start) for c in chunks] == [
        ("src/app.py", 1),
        ("src/app.py", 11),
        ("docs/notes.txt", 1),
        ("old.txt", 0),
    ]
    assert all(c.review_status == ReviewStatus.PENDING for c in chunks)
    assert all(c.ai_comments == [] for c in chunks)


def test_multiple_hunks_share_file_identity(sample_diff):
    """Test that hunks of one file carry the same file delta."""
    first, second = parse_diff(sample_diff)[:2]

    assert first.file == second.file
    assert first.file.old_path == "src/app.py"
    assert first.file.new_path == "src/app.py"
    assert first.file.status == FileStatus.MODIFIED


def test_added_file_scenario():
    """Test an added file with one three-line hunk."""
    diff = (
        "diff --git a/foo.txt b/foo.txt\n"
        "new file mode 100644\n"
        "--- /dev/null\n"
        "+++ b/foo.txt\n"
        "@@ -0,0 +1,3 @@\n"
        "+one\n"
        "+two\n"
        "+three\n"
    )

    chunks = parse_diff(diff)

    assert len(chunks) == 1
    chunk = chunks[0]
    assert chunk.file.status == FileStatus.ADDED
    assert chunk.file.old_path is None
    assert chunk.file.new_path == "foo.txt"
    assert chunk.context.added_lines == ["one", "two", "three"]
    assert chunk.context.total_changes == 3
    assert chunk.context.is_significant is False
    assert [c.new_line_number for c in chunk.changes] == [1, 2, 3]
    assert all(c.old_line_number is None for c in chunk.changes)


def test_deleted_file(sample_diff):
    """Test a deleted file uses the old path and old line numbers."""
    chunk = parse_diff(sample_diff)[3]

    assert chunk.file.status == FileStatus.DELETED
    assert chunk.file.new_path is None
    assert chunk.file_path == "old.txt"
    assert [c.kind for c in chunk.changes] == [LineChangeKind.DELETED, LineChangeKind.DELETED]
    assert [c.old_line_number for c in chunk.changes] == [1, 2]
    assert [c.line_number for c in chunk.changes] == [1, 2]


def test_line_numbers_and_kinds(sample_diff):
    """Test line number bookkeeping for mixed hunks."""
    chunk = parse_diff(sample_diff)[0]

    kinds = [c.kind for c in chunk.changes]
    assert kinds == [
        LineChangeKind.CONTEXT,
        LineChangeKind.DELETED,
        LineChangeKind.ADDED,
        LineChangeKind.ADDED,
        LineChangeKind.CONTEXT,
        LineChangeKind.CONTEXT,
    ]
    assert [(c.old_line_number, c.new_line_number) for c in chunk.changes] == [
        (1, 1),
        (2, None),
        (None, 2),
        (None, 3),
        (3, 4),
        (4, 5),
    ]
    assert [c.line_number for c in chunk.changes] == [1, 2, 2, 3, 4, 5]
    assert chunk.context.deleted_lines == ["import sys"]
    assert chunk.context.added_lines == ["import json", "import logging"]
    assert chunk.context.context_lines == ["import os", "", "def main():"]


def test_hunk_counts_match_line_tallies(sample_diff):
    """Test declared hunk counts equal the reconstructed kind tallies."""
    for chunk in parse_diff(sample_diff):
        kinds = [c.kind for c in chunk.changes]
        added = kinds.count(LineChangeKind.ADDED)
        deleted = kinds.count(LineChangeKind.DELETED)
        context = kinds.count(LineChangeKind.CONTEXT)

        assert added + context == chunk.hunk.new_count
        assert deleted + context == chunk.hunk.old_count


def test_line_numbers_strictly_increase(sample_diff):
    """Test per-side line numbers are strictly increasing within a hunk."""
    for chunk in parse_diff(sample_diff):
        old_numbers = [c.old_line_number for c in chunk.changes if c.old_line_number is not None]
        new_numbers = [c.new_line_number for c in chunk.changes if c.new_line_number is not None]

        assert old_numbers == sorted(set(old_numbers))
        assert new_numbers == sorted(set(new_numbers))


def test_parse_is_idempotent(sample_diff):
    """Test parsing the same text twice gives equal chunks."""
    assert parse_diff(sample_diff) == parse_diff(sample_diff)


def test_context_only_hunk_still_yields_chunk():
    """Test a hunk without additions or deletions still yields a chunk."""
    diff = (
        "--- a/readme.md\n"
        "+++ b/readme.md\n"
        "@@ -5,2 +5,2 @@\n"
        " unchanged one\n"
        " unchanged two\n"
    )

    chunks = parse_diff(diff)

    assert len(chunks) == 1
    assert chunks[0].context.total_changes == 0
    assert chunks[0].context.context_lines == ["unchanged one", "unchanged two"]


def test_omitted_counts_default_to_one():
    """Test '@@ -3 +3 @@' means one line on each side."""
    diff = "--- a/x\n+++ b/x\n@@ -3 +3 @@\n-a\n+b\n"

    hunk = parse_diff(diff)[0].hunk

    assert (hunk.old_start, hunk.old_count, hunk.new_start, hunk.new_count) == (3, 1, 3, 1)


def test_significant_chunk():
    """Test chunks with more than five changed lines are significant."""
    body = "".join(f"+line {i}\n" for i in range(6))
    diff = f"--- /dev/null\n+++ b/big.txt\n@@ -0,0 +1,6 @@\n{body}"

    chunk = parse_diff(diff)[0]

    assert chunk.context.total_changes == 6
    assert chunk.context.is_significant is True


def test_malformed_hunk_header_is_skipped():
    """Test a hunk header that does not parse produces no chunk."""
    diff = (
        "--- a/x.py\n"
        "+++ b/x.py\n"
        "@@ -1,1 +1,1 @@\n"
        "-a\n"
        "+b\n"
        "@@ bogus header @@\n"
        "+ignored\n"
        "@@ -20,1 +20,1 @@\n"
        "-c\n"
        "+d\n"
    )

    chunks = parse_diff(diff)

    assert [c.new_start for c in chunks] == [1, 20]
    assert all("ignored" not in c.context.added_lines for c in chunks)


def test_strict_mode_rejects_malformed_hunk_header():
    """Test strict mode raises on malformed hunk headers."""
    diff = "--- a/x.py\n+++ b/x.py\n@@ nonsense @@\n+a\n"

    with pytest.raises(DiffParseError):
        DiffParser(strict=True).parse(diff)


def test_unrecognized_lines_outside_hunks_are_ignored():
    """Test garbage outside hunks is skipped silently."""
    diff = (
        "this is not a diff\n"
        "index 123..456\n"
        "Binary files a/img.png and b/img.png differ\n"
    )

    assert parse_diff(diff) == []


def test_empty_and_none_input():
    """Test empty input yields no chunks."""
    assert parse_diff("") == []
    assert parse_diff(None) == []


def test_content_that_looks_like_path_header():
    """Test '--- ' and '+++ ' inside a hunk body are content lines."""
    diff = (
        "--- a/notes.md\n"
        "+++ b/notes.md\n"
        "@@ -1,2 +1,2 @@\n"
        "--- old rule\n"
        "+++ new rule\n"
        " keep\n"
    )

    chunk = parse_diff(diff)[0]

    assert chunk.context.deleted_lines == ["-- old rule"]
    assert chunk.context.added_lines == ["++ new rule"]
    assert chunk.file.new_path == "notes.md"


def test_plain_unified_diff_with_multiple_files():
    """Test diff -u output without 'diff --git' separators."""
    diff = (
        "--- a/one.txt\t2024-01-01 00:00:00\n"
        "+++ b/one.txt\t2024-01-01 00:00:01\n"
        "@@ -1 +1 @@\n"
        "-x\n"
        "+y\n"
        "--- a/two.txt\n"
        "+++ b/two.txt\n"
        "@@ -1 +1 @@\n"
        "-p\n"
        "+q\n"
    )

    chunks = parse_diff(diff)

    assert [c.file_path for c in chunks] == ["one.txt", "two.txt"]


def test_no_newline_marker_is_not_content():
    """Test the 'No newline at end of file' marker is skipped."""
    diff = (
        "--- a/x\n"
        "+++ b/x\n"
        "@@ -1 +1 @@\n"
        "-a\n"
        "\\ No newline at end of file\n"
        "+b\n"
        "\\ No newline at end of file\n"
    )

    chunk = parse_diff(diff)[0]

    assert len(chunk.changes) == 2


def test_random_hunks_preserve_counts_and_order():
    """Test generated hunks reconstruct their declared counts."""
    rng = random.Random(1234)
    lines = ["diff --git a/gen.py b/gen.py", "--- a/gen.py", "+++ b/gen.py"]
    old_start = new_start = 1
    expected = []

    for _ in range(20):
        kinds = [rng.choice("+- ") for _ in range(rng.randint(1, 8))]
        old_count = sum(1 for k in kinds if k != "+")
        new_count = sum(1 for k in kinds if k != "-")
        lines.append(f"@@ -{old_start},{old_count} +{new_start},{new_count} @@")
        lines.extend(f"{k}content" for k in kinds)
        expected.append((old_start, old_count, new_start, new_count))
        old_start += old_count + 5
        new_start += new_count + 5

    chunks = parse_diff("\n".join(lines) + "\n")

    assert [
        (c.hunk.old_start, c.hunk.old_count, c.hunk.new_start, c.hunk.new_count)
        for c in chunks
    ] == expected
    for chunk in chunks:
        kinds = [c.kind for c in chunk.changes]
        context = kinds.count(LineChangeKind.CONTEXT)
        assert kinds.count(LineChangeKind.ADDED) + context == chunk.hunk.new_count
        assert kinds.count(LineChangeKind.DELETED) + context == chunk.hunk.old_count


def test_form_feed_is_line_content():
    """Test only newlines split diff lines; a form feed stays inside its line."""
    diff = "--- a/m.py\n+++ b/m.py\n@@ -1,2 +1,3 @@\n a = 1\n+\x0c\n b = 2\n"

    chunk = parse_diff(diff)[0]

    assert [(c.kind, c.content, c.old_line_number, c.new_line_number) for c in chunk.changes] == [
        (LineChangeKind.CONTEXT, "a = 1", 1, 1),
        (LineChangeKind.ADDED, "\x0c", None, 2),
        (LineChangeKind.CONTEXT, "b = 2", 2, 3),
    ]
    kinds = [c.kind for c in chunk.changes]
    context = kinds.count(LineChangeKind.CONTEXT)
    assert kinds.count(LineChangeKind.ADDED) + context == chunk.hunk.new_count
    assert kinds.count(LineChangeKind.DELETED) + context == chunk.hunk.old_count


@pytest.mark.parametrize("separator", ["\x0b", "\x1c", "\x85", "\u2028", "\u2029"])
def test_unicode_separators_do_not_split_lines(separator):
    """Test other line-break characters are kept as content."""
    diff = f"--- a/t.txt\n+++ b/t.txt\n@@ -1 +1 @@\n-left{separator}right\n+new\n"

    chunk = parse_diff(diff)[0]

    assert chunk.context.deleted_lines == [f"left{separator}right"]
    assert chunk.context.added_lines == ["new"]


def test_crlf_line_endings():
    """Test CRLF diffs parse like LF diffs."""
    diff = "--- a/w.txt\r\n+++ b/w.txt\r\n@@ -1 +1 @@\r\n-old\r\n+new\r\n"

    chunk = parse_diff(diff)[0]

    assert chunk.file.new_path == "w.txt"
    assert chunk.context.deleted_lines == ["old"]
    assert chunk.context.added_lines == ["new"]


def test_unprefixed_line_inside_hunk_keeps_content():
    """Test a bare line within the declared counts is context with its full text."""
    diff = "--- a/f.txt\n+++ b/f.txt\n@@ -1,2 +1,2 @@\nfoo\n bar\n"

    chunk = parse_diff(diff)[0]

    assert [c.kind for c in chunk.changes] == [LineChangeKind.CONTEXT, LineChangeKind.CONTEXT]
    assert chunk.context.context_lines == ["foo", "bar"]
