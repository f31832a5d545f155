"""
Size attribution models

Value types shared by the attribution engine, the aggregator, the path
normalizer and the report writers.

Per-mapping records (`DecodedMapping`, `MappingEntry`, `SizeRange`) are plain
named tuples: a large bundle produces hundreds of thousands of them and they
never leave the engine. Everything that crosses a module boundary is a frozen
Pydantic model.
"""

import re
from typing import Dict, List, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

UNMAPPED_KEY = "<unmapped>"


class DecodedMapping(NamedTuple):
    """One mapping record as produced by the source map decoder.

    `generated_line` is 1-based, `generated_column` is 0-based and counted in
    UTF-16 code units, following the source map v3 convention.
    """

    generated_line: int
    generated_column: int
    source: Optional[str] = None
    original_line: Optional[int] = None
    original_column: Optional[int] = None
    name: Optional[str] = None


class MappingEntry(NamedTuple):
    """A mapping resolved to an absolute byte offset of the generated text."""

    offset: int
    source: Optional[str]


class SizeRange(NamedTuple):
    """Half-open byte range `[start, end)` attributed to `source` (None = unmapped)."""

    start: int
    end: int
    source: Optional[str]

    @property
    def size(self) -> int:
        return self.end - self.start


class Bundle(BaseModel):
    """A code file paired with its source map file, if one sits next to it."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    code_path: str = Field(..., alias="codePath", description="Path to the generated code file")
    map_path: Optional[str] = Field(
        None,
        alias="mapPath",
        description="Path to the source map, or None to look for an inline/referenced map",
    )


class BundleSizeMap(BaseModel):
    """Byte counts per original source for one bundle."""

    model_config = ConfigDict(frozen=True)

    label: str = Field(..., description="Display identifier of the bundle (path, Buffer, ...)")
    files: Dict[str, int] = Field(..., description="Source -> bytes, including the unmapped bucket")
    total_bytes: int = Field(..., ge=0, description="Byte length of the generated text")

    @model_validator(mode="after")
    def sizes_partition_total(self) -> "BundleSizeMap":
        if UNMAPPED_KEY not in self.files:
            raise ValueError(f"files must contain the {UNMAPPED_KEY} bucket")
        if sum(self.files.values()) != self.total_bytes:
            raise ValueError(
                f"attributed bytes ({sum(self.files.values())}) do not add up to total_bytes ({self.total_bytes})"
            )
        return self

    @property
    def unmapped_bytes(self) -> int:
        return self.files[UNMAPPED_KEY]


class AggregatedReport(BaseModel):
    """Byte counts per (possibly renamed) source across one or more bundles.

    Serializes with the camelCase names used by the JSON API:

        {"files": {...}, "unmappedBytes": 0, "totalBytes": 697}
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    files: Dict[str, int] = Field(default_factory=dict, description="Source -> bytes")
    unmapped_bytes: int = Field(0, ge=0, alias="unmappedBytes")
    total_bytes: int = Field(0, ge=0, alias="totalBytes")

    @model_validator(mode="after")
    def totals_are_consistent(self) -> "AggregatedReport":
        mapped = sum(size for source, size in self.files.items() if source != UNMAPPED_KEY)
        if self.total_bytes != self.unmapped_bytes + mapped:
            raise ValueError(
                f"total_bytes ({self.total_bytes}) != unmapped_bytes ({self.unmapped_bytes}) + mapped bytes ({mapped})"
            )
        if UNMAPPED_KEY in self.files and self.files[UNMAPPED_KEY] != self.unmapped_bytes:
            raise ValueError(f"{UNMAPPED_KEY} entry does not match unmapped_bytes")
        return self

    def to_api_dict(self) -> dict:
        return self.model_dump(by_alias=True)


class BundleFailure(BaseModel):
    """A bundle that was skipped in a multi-bundle run."""

    model_config = ConfigDict(frozen=True)

    label: str
    error: str


class ExploreResult(AggregatedReport):
    """Report returned by `explore`, optionally carrying rendered HTML."""

    html: Optional[str] = Field(None, description="Rendered treemap page when requested")
    errors: List[BundleFailure] = Field(default_factory=list, description="Bundles skipped in a combined run")

    def to_api_dict(self) -> dict:
        data = self.model_dump(by_alias=True, exclude_none=True)
        if not self.errors:
            data.pop("errors")
        return data


class PathRule(BaseModel):
    """One find/replace rule applied to source paths.

    `pattern` is a regular expression unless `regex` is False, in which case it
    is matched literally. Only the first match is replaced unless
    `replace_all` is set. Regex replacements use Python's template syntax
    (`\\1`, `\\g<name>`).
    """

    model_config = ConfigDict(frozen=True)

    pattern: str
    replacement: str
    regex: bool = True
    replace_all: bool = False

    def apply(self, key: str) -> str:
        count = 0 if self.replace_all else 1
        if self.regex:
            return re.sub(self.pattern, self.replacement, key, count=count)
        return key.replace(self.pattern, self.replacement, -1 if self.replace_all else 1)


class ExploreOptions(BaseModel):
    """Options accepted by `explore` and `explore_bundles`."""

    model_config = ConfigDict(frozen=True)

    only_mapped: bool = Field(False, description="Omit the <unmapped> line item from files")
    strip_common_prefix: bool = Field(False, description="Remove the path prefix shared by all sources")
    replace: List[PathRule] = Field(default_factory=list, description="Ordered find/replace rules")
    html: bool = Field(False, description="Render the treemap page into ExploreResult.html")

    @model_validator(mode="after")
    def one_path_mode(self) -> "ExploreOptions":
        if self.strip_common_prefix and self.replace:
            raise ValueError("strip_common_prefix and replace rules are mutually exclusive")
        return self


class WriteConfig(BaseModel):
    """Where `explore_bundles_and_write_html` puts its output."""

    model_config = ConfigDict(frozen=True)

    path: Optional[str] = Field(None, description="Output directory; current directory when None")
    file_name: str = Field(..., description="Output file name")
