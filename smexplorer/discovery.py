"""Expand a code path argument into bundles (code file + optional map file)."""

import glob
import os
from typing import List, Optional

from smexplorer.models import Bundle


def discover_bundles(path_arg: str, explicit_map_path: Optional[str] = None) -> List[Bundle]:
    """Return the bundles named by `path_arg`, sorted by code path.

    With an explicit map path there is exactly one bundle and nothing is
    globbed. Otherwise `path_arg` is expanded as a glob (`**` allowed); `.map`
    files are skipped, and every code file is paired with `<file>.map` when
    that exists, else with None (inline map or failure later on).
    """
    if explicit_map_path is not None:
        return [Bundle(code_path=path_arg, map_path=explicit_map_path)]

    bundles = []
    for code_path in glob.glob(path_arg, recursive=True):
        if code_path.endswith(".map") or not os.path.isfile(code_path):
            continue
        map_path = f"{code_path}.map"
        bundles.append(Bundle(code_path=code_path, map_path=map_path if os.path.isfile(map_path) else None))
    return sorted(bundles, key=lambda bundle: bundle.code_path)
