"""Attribution engine: map generated bytes back to original sources.

Source map mappings are sparse: each one marks the position in the generated
text where code from some original source starts. Every byte up to the next
mapping is attributed to that source. This module

- converts `(line, column)` positions into absolute byte offsets
  (`LineTable`),
- orders the resulting entries and turns consecutive pairs into half-open
  byte ranges that partition the generated text (`size_ranges`),
- sums range lengths per source into a `BundleSizeMap` (`attribute`).

Bytes before the first mapping, and bytes governed by a mapping without a
source, go to the `<unmapped>` bucket. When several mappings share an offset
the last one decoded governs the following bytes.
"""

import posixpath
from operator import attrgetter
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Union

from smexplorer.errors import DegenerateSourceMapError, NoSourceMapFoundError
from smexplorer.logging import get_logger
from smexplorer.models import UNMAPPED_KEY, BundleSizeMap, DecodedMapping, MappingEntry, SizeRange

logger = get_logger(__name__)


def _column_byte_offsets(line: bytes) -> List[int]:
    """Byte offset of every UTF-16 column of a non-ASCII line, plus the end of line.

    Characters outside the BMP take two UTF-16 units; a column pointing at the
    second unit resolves to the start of the character.
    """
    offsets: List[int] = []
    position = 0
    for char in line.decode("utf-8", errors="surrogateescape"):
        width = len(char.encode("utf-8", errors="surrogateescape"))
        offsets.append(position)
        if ord(char) > 0xFFFF:
            offsets.append(position)
        position += width
    offsets.append(position)
    return offsets


class LineTable:
    """Prefix sums of line byte lengths for one generated text.

    Lines are split on `\\n` only; a `\\r` before it counts as part of the line.
    """

    def __init__(self, data: bytes):
        self._lines = data.split(b"\n")
        self._starts: List[int] = []
        position = 0
        for line in self._lines:
            self._starts.append(position)
            position += len(line) + 1
        self._columns: Dict[int, List[int]] = {}

    def __len__(self) -> int:
        return len(self._lines)

    def line_start(self, line: int) -> int:
        """Byte offset of the first byte of 1-based `line`."""
        return self._starts[line - 1]

    def offset(self, line: int, column: int) -> Optional[int]:
        """Absolute byte offset of a 1-based line and 0-based UTF-16 column.

        Returns None for lines that do not exist or negative columns. Columns
        past the end of a line are extended one byte per unit.
        """
        if line < 1 or line > len(self._lines) or column < 0:
            return None
        index = line - 1
        text = self._lines[index]
        if text.isascii():
            return self._starts[index] + column

        columns = self._columns.get(index)
        if columns is None:
            columns = self._columns[index] = _column_byte_offsets(text)
        last = len(columns) - 1
        if column <= last:
            return self._starts[index] + columns[column]
        return self._starts[index] + columns[last] + (column - last)


def resolve_entries(table: LineTable, mappings: Iterable[DecodedMapping], total_bytes: int) -> List[MappingEntry]:
    """Convert decoded mappings to byte offsets, dropping out-of-range ones, sorted by offset.

    The sort is stable, so entries sharing an offset keep their decode order.
    """
    entries: List[MappingEntry] = []
    skipped = 0
    for mapping in mappings:
        offset = table.offset(mapping.generated_line, mapping.generated_column)
        if offset is None or not 0 <= offset <= total_bytes:
            skipped += 1
            continue
        entries.append(MappingEntry(offset, mapping.source))
    if skipped:
        logger.debug("skipped %d mappings outside the generated text", skipped)
    entries.sort(key=attrgetter("offset"))
    return entries


def size_ranges(entries: Sequence[MappingEntry], total_bytes: int) -> Iterator[SizeRange]:
    """Yield the ranges that partition `[0, total_bytes)` for sorted `entries`.

    Entries tied on the same offset produce zero-length ranges for all but the
    last of them.
    """
    if not entries:
        if total_bytes:
            yield SizeRange(0, total_bytes, None)
        return

    if entries[0].offset > 0:
        yield SizeRange(0, entries[0].offset, None)

    for current, following in zip(entries, entries[1:]):
        yield SizeRange(current.offset, following.offset, current.source)

    last = entries[-1]
    yield SizeRange(last.offset, total_bytes, last.source)


def _check_degenerate(entries: Sequence[MappingEntry], bundle_label: str, generated_file: Optional[str]) -> None:
    sources = {entry.source for entry in entries if entry.source is not None}
    if len(sources) != 1:
        return
    (source,) = sources
    own_names = {posixpath.basename(name.replace("\\", "/")) for name in (bundle_label, generated_file) if name}
    if posixpath.basename(source.replace("\\", "/")) in own_names:
        raise DegenerateSourceMapError(source, label=bundle_label)


def attribute(
    generated: Union[str, bytes],
    mappings: Optional[Iterable[DecodedMapping]],
    bundle_label: str,
    *,
    generated_file: Optional[str] = None,
) -> BundleSizeMap:
    """Attribute every byte of `generated` to an original source.

    Args:
        generated: The generated (bundled/minified) text. `str` is measured in
            UTF-8 bytes.
        mappings: Decoded source map mappings, or None when no map was found.
        bundle_label: Display identifier for the bundle, usually its path.
        generated_file: The `file` property of the source map, if any. Used
            together with `bundle_label` to spot maps that only point back at
            the bundle itself.

    Returns:
        A BundleSizeMap whose `files` lists sources in order of first
        appearance in the generated text, with `<unmapped>` last.

    Raises:
        NoSourceMapFoundError: `mappings` is None.
        DegenerateSourceMapError: the only source is the bundle itself.
    """
    if mappings is None:
        raise NoSourceMapFoundError(label=bundle_label)

    data = generated.encode("utf-8") if isinstance(generated, str) else bytes(generated)
    total_bytes = len(data)
    entries = resolve_entries(LineTable(data), mappings, total_bytes)
    _check_degenerate(entries, bundle_label, generated_file)

    files: Dict[str, int] = {}
    unmapped = 0
    for size_range in size_ranges(entries, total_bytes):
        if size_range.source is None:
            unmapped += size_range.size
        else:
            files[size_range.source] = files.get(size_range.source, 0) + size_range.size
    files[UNMAPPED_KEY] = unmapped

    logger.debug("%s: %d bytes, %d sources, %d unmapped", bundle_label, total_bytes, len(files) - 1, unmapped)
    return BundleSizeMap(label=bundle_label, files=files, total_bytes=total_bytes)
