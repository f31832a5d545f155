"""Report writers: JSON, TSV and a standalone HTML treemap page."""

import html
import json
from pathlib import Path
from typing import Any, Dict, Mapping

from smexplorer.models import WriteConfig

HTML_TEMPLATE = r"""<!doctype html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>__TITLE__ - Source Map Explorer</title>
<style>
  body { margin: 0; font: 12px/1.3 -apple-system, "Segoe UI", Helvetica, Arial, sans-serif; }
  header { padding: 8px 12px; background: #263238; color: #eceff1; }
  header .total { opacity: 0.8; margin-left: 1em; }
  #map { position: relative; width: 100vw; height: calc(100vh - 34px); }
  .node { position: absolute; box-sizing: border-box; overflow: hidden;
          border: 1px solid #fff; padding: 2px 4px; cursor: default; }
  .node.leaf { background: #90caf9; }
  .node.dir { background: #e3f2fd; }
</style>
</head>
<body>
<header>__TITLE__<span class="total"></span></header>
<div id="map"></div>
<script>
const TREE = __DATA_JSON__;

function formatBytes(n) {
  if (n < 1024) return n + " B";
  if (n < 1024 * 1024) return (n / 1024).toFixed(1) + " KB";
  return (n / 1024 / 1024).toFixed(2) + " MB";
}

function layout(node, x, y, w, h, depth, parent) {
  const el = document.createElement("div");
  el.className = "node " + (node.children ? "dir" : "leaf");
  el.style.left = x + "px";
  el.style.top = y + "px";
  el.style.width = w + "px";
  el.style.height = h + "px";
  el.title = node.path + " - " + formatBytes(node.size);
  el.textContent = node.name + " - " + formatBytes(node.size);
  parent.appendChild(el);
  if (!node.children || node.size === 0) return;
  const pad = 16;
  let offset = 0;
  const horizontal = depth % 2 === 0;
  for (const child of node.children) {
    const share = child.size / node.size;
    if (horizontal) {
      const cw = (w - 2) * share;
      layout(child, x + 1 + offset, y + pad, cw, Math.max(h - pad - 1, 0), depth + 1, parent);
      offset += cw;
    } else {
      const ch = (h - pad - 1) * share;
      layout(child, x + 1, y + pad + offset, Math.max(w - 2, 0), ch, depth + 1, parent);
      offset += ch;
    }
  }
}

const root = document.getElementById("map");
document.querySelector("header .total").textContent = formatBytes(TREE.size);
layout(TREE, 0, 0, root.clientWidth, root.clientHeight, 0, root);
</script>
</body>
</html>
"""


def to_json(files: Mapping[str, int]) -> str:
    """Source -> bytes as indented JSON, in the report's order."""
    return json.dumps(dict(files), indent=2) + "\n"


def to_tsv(files: Mapping[str, int]) -> str:
    """`Source<TAB>Size` header followed by `<bytes><TAB><source>` rows."""
    lines = ["Source\tSize"]
    lines.extend(f"{size}\t{source}" for source, size in files.items())
    return "\n".join(lines) + "\n"


def build_size_tree(files: Mapping[str, int]) -> Dict[str, Any]:
    """Nest sources by `/`-separated path component, children sorted by size.

    Every node carries `name`, `path` and `size`; directories also carry
    `children`.
    """
    root: Dict[str, Any] = {"name": "/", "path": "", "size": 0, "children": {}}
    for source, size in files.items():
        node = root
        node["size"] += size
        parts = [part for part in source.split("/") if part] or [source]
        for depth, part in enumerate(parts):
            children = node.setdefault("children", {})
            child = children.get(part)
            if child is None:
                child = children[part] = {"name": part, "path": "/".join(parts[: depth + 1]), "size": 0}
            child["size"] += size
            node = child

    def finish(node: Dict[str, Any]) -> Dict[str, Any]:
        if "children" in node:
            node["children"] = sorted((finish(child) for child in node["children"].values()), key=lambda c: -c["size"])
        return node

    return finish(root)


def to_html(files: Mapping[str, int], label: str) -> str:
    """Standalone treemap page titled `<label> - Source Map Explorer`."""
    payload = json.dumps(build_size_tree(files)).replace("</", "<\\/")
    return HTML_TEMPLATE.replace("__TITLE__", html.escape(label)).replace("__DATA_JSON__", payload)


def write_html(html_text: str, write_config: WriteConfig) -> Path:
    """Write a rendered page where `write_config` says; returns the file path."""
    directory = Path(write_config.path) if write_config.path is not None else Path.cwd()
    directory.mkdir(parents=True, exist_ok=True)
    output_path = directory / write_config.file_name
    output_path.write_text(html_text, encoding="utf-8")
    return output_path
