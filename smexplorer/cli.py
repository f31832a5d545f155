"""Command line entry point.

Usage:
    smexplorer dist/app.min.js [dist/app.min.js.map] [--json | --tsv | --html]
               [-m/--only-mapped] [--noroot] [--replace BEFORE --with AFTER ...]

Quote glob patterns ("dist/*.js") so that several bundles end up in one
combined report. Reports go to stdout; errors go to stderr. Without a format
flag the HTML report is opened in a browser.
"""

import argparse
import asyncio
import logging
import sys
import tempfile
import webbrowser
from pathlib import Path
from typing import List, Optional, Sequence

from smexplorer.config import ExplorerConfig, load_config
from smexplorer.discovery import discover_bundles
from smexplorer.errors import BundleFileNotFoundError, ExplorerError, InvalidCliUsageError
from smexplorer.explore import explore_bundles
from smexplorer.export import to_json, to_tsv
from smexplorer.logging import setup_logging
from smexplorer.models import ExploreOptions, ExploreResult, PathRule


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="smexplorer",
        description="Analyze and debug space usage through source maps.",
    )
    parser.add_argument("script", help="Bundle to analyze; may be a quoted glob pattern")
    parser.add_argument("source_map", nargs="?", default=None, help="Source map of the bundle")
    output = parser.add_mutually_exclusive_group()
    output.add_argument("--json", dest="output_format", action="store_const", const="json", help="Print sizes as JSON")
    output.add_argument("--tsv", dest="output_format", action="store_const", const="tsv", help="Print sizes as TSV")
    output.add_argument("--html", dest="output_format", action="store_const", const="html", help="Print the HTML treemap")
    parser.add_argument(
        "-m",
        "--only-mapped",
        action="store_true",
        default=None,
        help="Exclude the count of bytes that can't be mapped to a source",
    )
    parser.add_argument(
        "--noroot",
        action="store_true",
        default=None,
        help="Keep the path prefix shared by all sources",
    )
    parser.add_argument("--replace", action="append", default=[], metavar="BEFORE", help="Regex to find in source paths")
    parser.add_argument("--with", dest="with_", action="append", default=[], metavar="AFTER", help="Replacement for the preceding --replace")
    parser.add_argument("--config", type=Path, default=None, help="Path to smexplorer.toml")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output to stderr")
    return parser


def replace_rules(replace: Sequence[str], with_: Sequence[str]) -> List[PathRule]:
    """Pair --replace and --with flags in the order given."""
    if len(replace) != len(with_):
        raise InvalidCliUsageError("--replace flags must be paired with --with flags.")
    return [PathRule(pattern=before, replacement=after) for before, after in zip(replace, with_)]


def resolve_options(args: argparse.Namespace, config: ExplorerConfig) -> ExploreOptions:
    rules = replace_rules(args.replace, args.with_) or list(config.replace)
    only_mapped = config.only_mapped if args.only_mapped is None else args.only_mapped
    no_root = config.no_root if args.noroot is None else args.noroot
    output_format = args.output_format or config.output_format
    return ExploreOptions(
        only_mapped=only_mapped,
        strip_common_prefix=not no_root and not rules,
        replace=rules,
        html=output_format == "html",
    )


def render(result: ExploreResult, output_format: str) -> str:
    if output_format == "json":
        return to_json(result.files)
    if output_format == "tsv":
        return to_tsv(result.files)
    assert result.html is not None
    return result.html


def open_in_browser(html_text: str) -> Path:
    with tempfile.NamedTemporaryFile("w", suffix=".html", delete=False, encoding="utf-8") as f:
        f.write(html_text)
    webbrowser.open(Path(f.name).as_uri())
    return Path(f.name)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
        logger = setup_logging(level=logging.DEBUG if args.verbose else logging.getLevelName(config.log_level.upper()))
        options = resolve_options(args, config)
        output_format = args.output_format or config.output_format

        bundles = discover_bundles(args.script, args.source_map)
        if not bundles:
            raise BundleFileNotFoundError(args.script)
        logger.debug([bundle.model_dump(by_alias=True) for bundle in bundles])

        result = asyncio.run(explore_bundles(bundles, options))
    except (ExplorerError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    if args.output_format is None and output_format == "html":
        path = open_in_browser(render(result, output_format))
        print(f"Report written to {path}", file=sys.stderr)
    else:
        sys.stdout.write(render(result, output_format))

    for failure in result.errors:
        print(f"error: {failure.label}: {failure.error}", file=sys.stderr)
    return 1 if result.errors else 0


if __name__ == "__main__":
    sys.exit(main())
