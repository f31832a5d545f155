"""Locating and decoding source maps.

Mapping decoding itself is done by the `sourcemap` package; this module finds
the map text for a bundle and adapts the decoder's tokens into
`DecodedMapping`s.

A bundle's map is looked up in this order:

1. an explicitly supplied map (path or raw bytes),
2. the `//# sourceMappingURL=` comment of the code: an inline `data:` URL or
   a path relative to the code file,
3. `<code file>.map` next to the code file.
"""

import base64
import json
import re
from pathlib import Path
from typing import List, NamedTuple, Optional, Union
from urllib.parse import unquote

import sourcemap

from smexplorer.errors import BundleFileNotFoundError, NoSourceMapFoundError
from smexplorer.logging import get_logger
from smexplorer.models import DecodedMapping

logger = get_logger(__name__)

PathLike = Union[str, Path]
XSSI_PREFIXES = (")]}'", ")]}")
TRAILING_COMMENT_RE = re.compile(rb"(?:\r?\n)?[ \t]*//[#@] sourceMappingURL=[^\r\n]*\s*\Z")


class SourceMapDocument(NamedTuple):
    """A decoded source map: declared metadata plus its mappings in decode order."""

    file: Optional[str]
    sources: List[str]
    mappings: List[DecodedMapping]


def read_input(path: PathLike) -> bytes:
    """Read a code or map file, turning a missing file into BundleFileNotFoundError."""
    try:
        return Path(path).read_bytes()
    except (FileNotFoundError, IsADirectoryError) as exc:
        raise BundleFileNotFoundError(str(path)) from exc


def _strip_xssi(text: str) -> str:
    if text.startswith(XSSI_PREFIXES):
        return text.split("\n", 1)[1] if "\n" in text else ""
    return text


def decode_source_map(text: Union[str, bytes]) -> SourceMapDocument:
    """Decode source map JSON into a SourceMapDocument.

    Raises:
        NoSourceMapFoundError: the text is not a usable source map.
    """
    if isinstance(text, bytes):
        text = text.decode("utf-8-sig")
    try:
        raw = json.loads(_strip_xssi(text))
    except ValueError as exc:
        raise NoSourceMapFoundError(f"Unable to parse source map: {exc}") from exc
    if not isinstance(raw, dict):
        raise NoSourceMapFoundError("Unable to parse source map: expected a JSON object")

    raw.setdefault("sources", [])
    raw.setdefault("names", [])
    try:
        # negative columns trip an assert whose handler then raises AttributeError
        index = sourcemap.loads(json.dumps(raw))
    except (
        ValueError,
        KeyError,
        IndexError,
        TypeError,
        AssertionError,
        AttributeError,
        sourcemap.SourceMapDecodeError,
    ) as exc:
        raise NoSourceMapFoundError(f"Unable to parse source map: {exc!r}") from exc

    mappings = [
        DecodedMapping(
            generated_line=token.dst_line + 1,
            generated_column=token.dst_col,
            source=token.src or None,
            original_line=token.src_line,
            original_column=token.src_col,
            name=token.name,
        )
        for token in index
    ]
    return SourceMapDocument(file=raw.get("file"), sources=list(raw.get("sources") or []), mappings=mappings)


def _decode_data_url(url: str) -> bytes:
    header, _, payload = url.partition(",")
    if header.endswith(";base64"):
        return base64.b64decode(payload)
    return unquote(payload).encode("utf-8")


def strip_source_map_comment(code: bytes) -> bytes:
    """Drop a trailing `sourceMappingURL` comment and its line break.

    The comment is not part of any original source; only a comment at the end
    of the file is removed so the offsets of the code before it stay valid.
    """
    return TRAILING_COMMENT_RE.sub(b"", code, count=1)


def find_source_map_url(code: bytes) -> Optional[str]:
    """Return the sourceMappingURL of a code file, if it declares one."""
    return sourcemap.discover(code.decode("utf-8", errors="replace"))


def locate_source_map(
    code: bytes,
    code_path: Optional[PathLike] = None,
    map_source: Union[PathLike, bytes, None] = None,
) -> bytes:
    """Return the raw source map for a bundle.

    Args:
        code: The generated code.
        code_path: Where `code` was read from; None for in-memory buffers, which
            can then only use an explicit or inline map.
        map_source: An explicit map, as a path or as raw bytes.

    Raises:
        BundleFileNotFoundError: an explicit map path does not exist.
        NoSourceMapFoundError: nothing usable was found.
    """
    if isinstance(map_source, (bytes, bytearray)):
        return bytes(map_source)
    if map_source is not None:
        return read_input(map_source)

    url = find_source_map_url(code)
    if url and url.startswith("data:"):
        logger.debug("using inline source map")
        return _decode_data_url(url)

    if code_path is not None:
        candidates = []
        if url:
            candidates.append(Path(code_path).parent / unquote(url))
        candidates.append(Path(f"{code_path}.map"))
        for candidate in candidates:
            if candidate.is_file():
                logger.debug("using source map %s", candidate)
                return candidate.read_bytes()
        if url:
            logger.debug("referenced source map %s does not exist", url)

    raise NoSourceMapFoundError(label=str(code_path) if code_path is not None else None)
