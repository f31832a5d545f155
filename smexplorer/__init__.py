"""
Source Map Explorer - attribute bundle bytes to original source files.

Reads a minified/bundled JavaScript file together with its source map and
reports how many bytes of the bundle came from each original source, plus
the bytes that cannot be attributed to any source.

    from smexplorer import explore, ExploreOptions

    result = explore("dist/app.min.js", options=ExploreOptions(only_mapped=True))
    result.to_api_dict()
    # {"files": {"src/app.js": 1234, ...}, "unmappedBytes": 0, "totalBytes": 1234}
"""

from smexplorer.aggregate import aggregate
from smexplorer.attribution import attribute
from smexplorer.discovery import discover_bundles
from smexplorer.errors import (
    BundleFileNotFoundError,
    DegenerateSourceMapError,
    ExplorerError,
    InvalidCliUsageError,
    NoSourceMapFoundError,
)
from smexplorer.explore import explore, explore_bundle, explore_bundles, explore_bundles_and_write_html
from smexplorer.models import (
    UNMAPPED_KEY,
    AggregatedReport,
    Bundle,
    BundleSizeMap,
    ExploreOptions,
    ExploreResult,
    PathRule,
    WriteConfig,
)
from smexplorer.paths import adjust_source_paths, common_path_prefix, map_keys, normalize_paths

__all__ = [
    "UNMAPPED_KEY",
    "AggregatedReport",
    "Bundle",
    "BundleSizeMap",
    "ExploreOptions",
    "ExploreResult",
    "PathRule",
    "WriteConfig",
    "ExplorerError",
    "BundleFileNotFoundError",
    "NoSourceMapFoundError",
    "DegenerateSourceMapError",
    "InvalidCliUsageError",
    "attribute",
    "aggregate",
    "adjust_source_paths",
    "common_path_prefix",
    "map_keys",
    "normalize_paths",
    "discover_bundles",
    "explore",
    "explore_bundle",
    "explore_bundles",
    "explore_bundles_and_write_html",
]

__version__ = "0.1.0"
