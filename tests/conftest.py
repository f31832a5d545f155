"""Test fixtures: generated bundles and source maps written to a temp directory.

This module provides:
- A minimal VLQ encoder so tests can spell mappings as readable tuples
- `make_source_map` to assemble a source map document
- The `testdata` fixture, a directory laid out like a real build output:

    foo.min.js                        code, references foo.min.js.map
    foo.min.js.map
    foo.1234.js                       code without a comment, map next to it
    foo.1234.js.map
    foo.min.inline-map.js             code with a base64 inline map
    foo.min.no-map.js                 code without any map
    foo.min.no-map.separated.js.map   map for foo.min.no-map.js, passed explicitly
    foo.min.no-map.bad-map.js.map     map whose only source is the bundle itself

All bundles share one 3454-byte body: 463 bytes of browserify prelude, 2854
bytes of dist/bar.js and 137 bytes of dist/foo.js on a single line.
"""

import base64
import json
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import pytest

B64_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"

PRELUDE = "node_modules/browserify/node_modules/browser-pack/_prelude.js"
BAR = "dist/bar.js"
FOO = "dist/foo.js"
SOURCES = [PRELUDE, BAR, FOO]

PRELUDE_SIZE = 463
BAR_SIZE = 2854
FOO_SIZE = 137
BODY = "p" * PRELUDE_SIZE + "b" * BAR_SIZE + "f" * FOO_SIZE
BODY_SIZE = len(BODY)

# (generated column, source index, original line, original column)
BODY_SEGMENTS = [[(0, 0, 0, 0), (PRELUDE_SIZE, 1, 0, 0), (PRELUDE_SIZE + BAR_SIZE, 2, 0, 0)]]

Segment = Tuple[int, ...]


def encode_vlq(value: int) -> str:
    """Base64 VLQ encoding of one integer, as used by source map v3."""
    vlq = ((-value) << 1) | 1 if value < 0 else value << 1
    encoded = ""
    while True:
        digit = vlq & 0b11111
        vlq >>= 5
        if vlq:
            digit |= 0b100000
        encoded += B64_ALPHABET[digit]
        if not vlq:
            return encoded


def encode_mappings(lines: Sequence[Sequence[Segment]]) -> str:
    """Encode absolute segments per generated line into a `mappings` string.

    Each segment is `(column,)` or `(column, source, original_line, original_column)`.
    """
    encoded_lines: List[str] = []
    previous_source = previous_line = previous_column = 0
    for segments in lines:
        previous_generated = 0
        encoded_segments: List[str] = []
        for segment in segments:
            fields = [segment[0] - previous_generated]
            previous_generated = segment[0]
            if len(segment) > 1:
                source, line, column = segment[1:4]
                fields += [source - previous_source, line - previous_line, column - previous_column]
                previous_source, previous_line, previous_column = source, line, column
            encoded_segments.append("".join(encode_vlq(field) for field in fields))
        encoded_lines.append(",".join(encoded_segments))
    return ";".join(encoded_lines)


def make_source_map(
    sources: Sequence[str],
    lines: Sequence[Sequence[Segment]],
    file: Optional[str] = None,
) -> Dict[str, object]:
    source_map: Dict[str, object] = {
        "version": 3,
        "sources": list(sources),
        "names": [],
        "mappings": encode_mappings(lines),
    }
    if file is not None:
        source_map["file"] = file
    return source_map


def inline_comment(source_map: Dict[str, object]) -> str:
    payload = base64.b64encode(json.dumps(source_map).encode("utf-8")).decode("ascii")
    return f"//# sourceMappingURL=data:application/json;charset=utf-8;base64,{payload}"


def write_bundle(directory: Path, name: str, code: str, source_map: Optional[Dict[str, object]] = None) -> Path:
    """Write `name` and, when given, `name.map` into `directory`."""
    code_path = directory / name
    code_path.write_text(code, encoding="utf-8")
    if source_map is not None:
        (directory / f"{name}.map").write_text(json.dumps(source_map), encoding="utf-8")
    return code_path


@pytest.fixture
def body_map() -> Dict[str, object]:
    return make_source_map(SOURCES, BODY_SEGMENTS, file="foo.min.js")


@pytest.fixture
def testdata(tmp_path: Path, body_map: Dict[str, object]) -> Path:
    """Directory with the bundle fixtures described in the module docstring."""
    directory = tmp_path / "testdata"
    directory.mkdir()

    write_bundle(directory, "foo.min.js", BODY + "\n//# sourceMappingURL=foo.min.js.map\n", body_map)
    write_bundle(directory, "foo.1234.js", BODY, body_map)
    write_bundle(directory, "foo.min.inline-map.js", BODY + "\n" + inline_comment(body_map) + "\n")
    write_bundle(directory, "foo.min.no-map.js", BODY)
    (directory / "foo.min.no-map.separated.js.map").write_text(json.dumps(body_map), encoding="utf-8")

    bad_map = make_source_map(["foo.min.js"], [[(0, 0, 0, 0)]], file="foo.min.js")
    (directory / "foo.min.no-map.bad-map.js.map").write_text(json.dumps(bad_map), encoding="utf-8")
    return directory


@pytest.fixture
def in_tmp_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run the test from tmp_path so relative `testdata/...` paths resolve."""
    monkeypatch.chdir(tmp_path)
    return tmp_path
