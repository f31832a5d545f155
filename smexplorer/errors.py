"""Exceptions raised while exploring bundles.

Every error here is an input or configuration mistake; none of them is
retried. The CLI prints `str(error)` and exits non-zero.
"""

from typing import Optional

DEGENERATE_HINT = (
    "This typically means that your source map doesn't map all the way back to the original sources. "
    "This can happen if you use browserify+uglifyjs, for example, and don't set the --in-source-map flag to uglify."
)


class ExplorerError(Exception):
    """Base class for all smexplorer errors."""


class BundleFileNotFoundError(ExplorerError, FileNotFoundError):
    """A requested code or map file does not exist on disk."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"ENOENT: no such file or directory, open '{path}'")

    def __str__(self) -> str:
        return self.args[0]


class NoSourceMapFoundError(ExplorerError):
    """No explicit, inline, referenced or adjacent source map could be used."""

    def __init__(self, message: str = "Unable to find a source map.", label: Optional[str] = None) -> None:
        self.label = label
        super().__init__(message)


class DegenerateSourceMapError(ExplorerError):
    """The source map only points back at the bundle itself."""

    def __init__(self, source: str, label: Optional[str] = None) -> None:
        self.source = source
        self.label = label
        super().__init__(f"Your source map only contains one source ({source})\n{DEGENERATE_HINT}")


class InvalidCliUsageError(ExplorerError):
    """Command line flags that cannot be interpreted together."""
