"""Explore one or many bundles end to end.

Each bundle goes through read -> locate map -> decode -> attribute on its own;
bundles share nothing, so `explore_bundles` runs them in worker threads and
merges the results once all of them are done, in input order.

Typical usage:
    ```python
    result = explore("dist/app.min.js", options=ExploreOptions(only_mapped=True))
    result.files  # {"src/index.js": 1234, ...}

    # several bundles into one combined report
    bundles = discover_bundles("dist/*.js")
    combined = asyncio.run(explore_bundles(bundles, ExploreOptions(html=True)))
    ```
"""

import asyncio
from pathlib import Path
from typing import List, Optional, Sequence, Union

from smexplorer.aggregate import aggregate
from smexplorer.attribution import attribute
from smexplorer.discovery import discover_bundles
from smexplorer.errors import BundleFileNotFoundError, ExplorerError
from smexplorer.export import to_html, write_html
from smexplorer.logging import get_logger
from smexplorer.models import (
    AggregatedReport,
    Bundle,
    BundleFailure,
    BundleSizeMap,
    ExploreOptions,
    ExploreResult,
    WriteConfig,
)
from smexplorer.paths import normalize_paths
from smexplorer.sourcemaps import decode_source_map, locate_source_map, read_input, strip_source_map_comment

logger = get_logger(__name__)

BUFFER_LABEL = "Buffer"
COMBINED_LABEL = "[combined]"

CodeInput = Union[str, Path, bytes]
MapInput = Union[str, Path, bytes, None]


def explore_bundle(code: CodeInput, map_source: MapInput = None, *, label: Optional[str] = None) -> BundleSizeMap:
    """Attribute the bytes of one bundle to its original sources.

    Args:
        code: Path of the generated code file, or its contents as bytes.
        map_source: Explicit source map, as a path or bytes. When None the map
            is looked up inline, through the sourceMappingURL comment, then
            next to the code file.
        label: Display identifier; defaults to the code path, or "Buffer" for
            in-memory code.

    A trailing `sourceMappingURL` comment is not counted towards any source
    nor towards total_bytes.
    """
    if isinstance(code, (bytes, bytearray)):
        data = bytes(code)
        code_path = None
        label = label or BUFFER_LABEL
    else:
        data = read_input(code)
        code_path = code
        label = label or str(code)

    document = decode_source_map(locate_source_map(data, code_path, map_source))
    return attribute(strip_source_map_comment(data), document.mappings, label, generated_file=document.file)


def _finish(
    report: AggregatedReport,
    label: str,
    options: ExploreOptions,
    errors: Sequence[BundleFailure] = (),
) -> ExploreResult:
    report = normalize_paths(
        report,
        strip_common_prefix=options.strip_common_prefix,
        replace=options.replace,
    )
    html = to_html(report.files, label) if options.html else None
    return ExploreResult(
        files=report.files,
        unmapped_bytes=report.unmapped_bytes,
        total_bytes=report.total_bytes,
        html=html,
        errors=list(errors),
    )


def explore(code: CodeInput, map_source: MapInput = None, options: Optional[ExploreOptions] = None) -> ExploreResult:
    """Explore a single bundle and return its (normalized) report.

    Raises:
        BundleFileNotFoundError: the code or explicit map file does not exist.
        NoSourceMapFoundError: no map could be found or parsed.
        DegenerateSourceMapError: the map only points back at the bundle.
    """
    options = options or ExploreOptions()
    bundle_map = explore_bundle(code, map_source)
    return _finish(aggregate([bundle_map], only_mapped=options.only_mapped), bundle_map.label, options)


async def explore_bundles(bundles: Sequence[Bundle], options: Optional[ExploreOptions] = None) -> ExploreResult:
    """Explore several bundles concurrently and merge them into one report.

    A bundle that fails is reported in `ExploreResult.errors` and left out of
    the sums. If every bundle fails, the first error is raised.
    """
    options = options or ExploreOptions()
    if not bundles:
        raise ExplorerError("No bundles to explore.")

    outcomes = await asyncio.gather(
        *(asyncio.to_thread(explore_bundle, bundle.code_path, bundle.map_path) for bundle in bundles),
        return_exceptions=True,
    )

    size_maps: List[BundleSizeMap] = []
    failures: List[BundleFailure] = []
    first_error: Optional[BaseException] = None
    for bundle, outcome in zip(bundles, outcomes):
        if isinstance(outcome, ExplorerError):
            logger.warning("skipping %s: %s", bundle.code_path, outcome)
            failures.append(BundleFailure(label=bundle.code_path, error=str(outcome)))
            first_error = first_error or outcome
        elif isinstance(outcome, BaseException):
            raise outcome
        else:
            size_maps.append(outcome)

    if not size_maps:
        assert first_error is not None
        raise first_error

    label = size_maps[0].label if len(bundles) == 1 else COMBINED_LABEL
    return _finish(aggregate(size_maps, only_mapped=options.only_mapped), label, options, failures)


async def explore_bundles_and_write_html(
    write_config: WriteConfig,
    code_glob: str,
    map_path: Optional[str] = None,
) -> Path:
    """Explore every bundle matching `code_glob` and write the combined treemap page.

    Returns:
        The path of the written HTML file.
    """
    bundles = discover_bundles(code_glob, map_path)
    if not bundles:
        raise BundleFileNotFoundError(code_glob)
    result = await explore_bundles(bundles, ExploreOptions(html=True, strip_common_prefix=True))
    assert result.html is not None
    output_path = write_html(result.html, write_config)
    logger.info("wrote %s", output_path)
    return output_path
