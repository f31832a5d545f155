"""Merge per-bundle size maps into one report."""

from typing import Dict, Iterable

from smexplorer.logging import get_logger
from smexplorer.models import UNMAPPED_KEY, AggregatedReport, BundleSizeMap

logger = get_logger(__name__)


def aggregate(bundle_maps: Iterable[BundleSizeMap], *, only_mapped: bool = False) -> AggregatedReport:
    """Sum byte counts per source across bundles.

    Sources keep the order in which they first appear, walking the bundles in
    the given order; `<unmapped>` always comes last. With `only_mapped` the
    `<unmapped>` line item is left out of `files`, but `unmapped_bytes` and
    `total_bytes` still describe the full bundles.
    """
    files: Dict[str, int] = {}
    unmapped_bytes = 0
    total_bytes = 0
    bundle_count = 0
    for bundle_map in bundle_maps:
        bundle_count += 1
        for source, size in bundle_map.files.items():
            if source == UNMAPPED_KEY:
                continue
            files[source] = files.get(source, 0) + size
        unmapped_bytes += bundle_map.unmapped_bytes
        total_bytes += bundle_map.total_bytes

    if not only_mapped:
        files[UNMAPPED_KEY] = unmapped_bytes

    logger.debug("aggregated %d bundles: %d sources, %d bytes", bundle_count, len(files), total_bytes)
    return AggregatedReport(files=files, unmapped_bytes=unmapped_bytes, total_bytes=total_bytes)
