"""
Unified diff parser.

Rebuilds file / hunk / line structure from raw ``git diff`` text and turns
every (file, hunk) pair into a review :class:`Chunk`. Pure: no I/O.
"""

import re
from typing import List, Optional

from app.models.diff import (
    Chunk,
    ChunkContext,
    FileDelta,
    FileStatus,
    Hunk,
    LineChange,
    LineChangeKind,
)
from app.utils.logging import get_logger

logger = get_logger(__name__)

FILE_HEADER_PREFIX = "diff --git "
OLD_PATH_PREFIX = "--- "
NEW_PATH_PREFIX = "+++ "
NULL_DEVICE = "/dev/null"
NO_NEWLINE_MARKER = "\\ No newline at end of file"

HUNK_HEADER_RE = re.compile(r"^@@\s+-(\d+)(?:,(\d+))?\s+\+(\d+)(?:,(\d+))?\s+@@")


class DiffParseError(ValueError):
    """Raised in strict mode for hunk headers that do not parse."""


class DiffParser:
    """
    Single forward pass over the diff lines.

    The parser tracks the file currently being read and the hunk currently
    open. A hunk is flushed into a chunk when the next file header, the next
    hunk header or the end of input is reached.

    Args:
        strict: Reject malformed hunk headers with :class:`DiffParseError`
            instead of silently skipping them.
    """

    def __init__(self, strict: bool = False):
        self.strict = strict

    def parse(self, diff_text: str) -> List[Chunk]:
        """
        Parse unified diff text into chunks.

        Args:
            diff_text: Raw unified diff

        Returns:
            Ordered list of chunks; empty when nothing could be parsed

        Raises:
            DiffParseError: Only in strict mode
        """
        if self.strict:
            return self._parse(diff_text)

        try:
            return self._parse(diff_text)
        except Exception as e:
            logger.error(f"Failed to parse diff, skipping review: {e}", exc_info=True)
            return []

    def _parse(self, diff_text: str) -> List[Chunk]:
        chunks: List[Chunk] = []
        current_file: Optional[FileDelta] = None
        current_hunk: Optional[Hunk] = None
        old_line = new_line = 0
        old_remaining = new_remaining = 0

        def flush() -> None:
            if current_hunk is not None and current_file is not None:
                chunks.append(build_chunk(current_file, current_hunk))

        for line in _split_lines(diff_text):
            # Inside the declared line counts every line is hunk content
            in_body = current_hunk is not None and (old_remaining > 0 or new_remaining > 0)

            if line.startswith(FILE_HEADER_PREFIX):
                flush()
                current_file = FileDelta()
                current_hunk = None

            elif not in_body and line.startswith((OLD_PATH_PREFIX, NEW_PATH_PREFIX)):
                if current_hunk is not None or current_file is None:
                    # plain `diff -u` output has no `diff --git` line between files
                    flush()
                    current_file = FileDelta()
                    current_hunk = None

                if line.startswith(OLD_PATH_PREFIX):
                    path = _strip_path(line[len(OLD_PATH_PREFIX):], "a/")
                    if path == NULL_DEVICE:
                        current_file.old_path = None
                        current_file.status = FileStatus.ADDED
                    else:
                        current_file.old_path = path
                else:
                    path = _strip_path(line[len(NEW_PATH_PREFIX):], "b/")
                    if path == NULL_DEVICE:
                        current_file.new_path = None
                        current_file.status = FileStatus.DELETED
                    else:
                        current_file.new_path = path

            elif line.startswith("@@"):
                flush()
                current_hunk = None

                match = HUNK_HEADER_RE.match(line)
                if not match:
                    if self.strict:
                        raise DiffParseError(f"Malformed hunk header: {line!r}")
                    logger.debug(f"Skipping malformed hunk header: {line!r}")
                    continue

                old_start = int(match.group(1))
                old_count = int(match.group(2) or 1)
                new_start = int(match.group(3))
                new_count = int(match.group(4) or 1)

                current_hunk = Hunk(
                    old_start=old_start,
                    old_count=old_count,
                    new_start=new_start,
                    new_count=new_count,
                    changes=[],
                )
                old_line, new_line = old_start, new_start
                old_remaining, new_remaining = old_count, new_count

            elif current_hunk is not None:
                if line.startswith(NO_NEWLINE_MARKER):
                    continue
                if not in_body and not line.startswith(("+", "-", " ")):
                    continue

                index = len(current_hunk.changes)
                if line.startswith("+"):
                    kind = LineChangeKind.ADDED
                    old_number, new_number = None, new_line
                    new_line += 1
                    new_remaining -= 1
                elif line.startswith("-"):
                    kind = LineChangeKind.DELETED
                    old_number, new_number = old_line, None
                    old_line += 1
                    old_remaining -= 1
                else:
                    kind = LineChangeKind.CONTEXT
                    old_number, new_number = old_line, new_line
                    old_line += 1
                    new_line += 1
                    old_remaining -= 1
                    new_remaining -= 1

                current_hunk.changes.append(LineChange(
                    kind=kind,
                    content=line[1:] if line.startswith(("+", "-", " ")) else line,
                    old_line_number=old_number,
                    new_line_number=new_number,
                    line_number=_display_line_number(old_number, new_number, current_hunk.new_start + index),
                ))

            # anything else outside an open hunk (index, mode lines, ...) is ignored

        flush()
        return chunks


def parse_diff(diff_text: str, strict: bool = False) -> List[Chunk]:
    """Parse unified diff text into chunks. See :class:`DiffParser`."""
    return DiffParser(strict=strict).parse(diff_text)


def build_chunk(file: FileDelta, hunk: Hunk) -> Chunk:
    """Combine one file and one hunk into a review chunk."""
    return Chunk(
        file=file.model_copy(),
        hunk=hunk,
        context=ChunkContext.from_changes(hunk.changes),
    )


def _split_lines(diff_text: Optional[str]) -> List[str]:
    # Only "\n" ends a diff line; form feeds and other separators are content
    lines = (diff_text or "").split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def _strip_path(raw: str, prefix: str) -> str:
    # git appends a tab and timestamp for some diff sources
    path = raw.split("\t", 1)[0].rstrip()
    if path.startswith(prefix):
        return path[len(prefix):]
    return path


def _display_line_number(old_number: Optional[int], new_number: Optional[int], fallback: int) -> int:
    # 0 is not a valid line, so falsy numbers fall through like unset ones
    return new_number or old_number or fallback
