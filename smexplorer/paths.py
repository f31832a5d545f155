"""Source path display normalization.

Two mutually exclusive modes rewrite the keys of a report's `files`:

- common prefix stripping: drop the directory prefix every source shares,
  e.g. `/home/me/app/src/a.js` and `/home/me/app/lib/b.js` become `src/a.js`
  and `lib/b.js`;
- find/replace: apply ordered `PathRule`s, one after the other, so a later
  rule sees the output of an earlier one.

The `<unmapped>` bucket is never renamed, and no source may be renamed to it.
Renaming can merge two sources into one display name; their sizes are summed.
"""

from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, TypeVar, Union

from smexplorer.models import UNMAPPED_KEY, AggregatedReport, PathRule

ReportT = TypeVar("ReportT", bound=AggregatedReport)
ReplaceRules = Union[Mapping[str, str], Iterable[Union[PathRule, Tuple[str, str]]]]


def common_path_prefix(paths: Sequence[str]) -> str:
    """Longest prefix shared by all `paths` that ends with a `/`.

    >>> common_path_prefix(["/abc/def", "/abc/efg"])
    '/abc/'
    >>> common_path_prefix(["abc", "abcd", "ab"])
    ''
    """
    if len(paths) < 2:
        return ""
    first, last = min(paths), max(paths)
    length = 0
    for a, b in zip(first, last):
        if a != b:
            break
        length += 1
    return first[: first.rfind("/", 0, length) + 1]


def map_keys(mapping: Mapping[str, int], fn: Callable[[str], str]) -> Dict[str, int]:
    """Apply `fn` to every key, summing the values of keys that collide."""
    result: Dict[str, int] = {}
    for key, value in mapping.items():
        new_key = fn(key)
        result[new_key] = result.get(new_key, 0) + value
    return result


def coerce_rules(replace: Optional[ReplaceRules]) -> List[PathRule]:
    """Normalize the accepted rule spellings into a list of PathRule.

    A plain mapping is read as `{regex: replacement}` in iteration order.
    """
    if not replace:
        return []
    if isinstance(replace, Mapping):
        return [PathRule(pattern=pattern, replacement=replacement) for pattern, replacement in replace.items()]
    rules: List[PathRule] = []
    for rule in replace:
        if isinstance(rule, PathRule):
            rules.append(rule)
        else:
            pattern, replacement = rule
            rules.append(PathRule(pattern=pattern, replacement=replacement))
    return rules


def _keep_unmapped(fn: Callable[[str], str]) -> Callable[[str], str]:
    def transform(key: str) -> str:
        if key == UNMAPPED_KEY:
            return key
        new_key = fn(key)
        if new_key == UNMAPPED_KEY:
            raise ValueError(f"source {key!r} cannot be renamed to the reserved {UNMAPPED_KEY} key")
        return new_key

    return transform


def adjust_source_paths(
    files: Mapping[str, int],
    strip_common_prefix: bool = False,
    replace: Optional[ReplaceRules] = None,
) -> Dict[str, int]:
    """Return `files` with display-adjusted keys.

    Raises:
        ValueError: both modes were requested, or a source would be renamed to
            the reserved `<unmapped>` key.
    """
    rules = coerce_rules(replace)
    if strip_common_prefix and rules:
        raise ValueError("strip_common_prefix and replace rules are mutually exclusive")

    if strip_common_prefix:
        prefix = common_path_prefix([key for key in files if key != UNMAPPED_KEY])
        if prefix:
            return map_keys(files, _keep_unmapped(lambda key: key[len(prefix) :]))
        return dict(files)

    adjusted = dict(files)
    for rule in rules:
        adjusted = map_keys(adjusted, _keep_unmapped(rule.apply))
    return adjusted


def normalize_paths(
    report: ReportT,
    *,
    strip_common_prefix: bool = False,
    replace: Optional[ReplaceRules] = None,
) -> ReportT:
    """Return a copy of `report` with adjusted source paths; sizes are untouched.

    The copy is validated again, so the report totals still hold.
    """
    files = adjust_source_paths(report.files, strip_common_prefix=strip_common_prefix, replace=replace)
    return type(report).model_validate({**report.model_dump(), "files": files})
