"""Auto-generate API reference pages from tealeaf.__all__.

Each public symbol is mapped to a reference page based on its source module.
When a new symbol is exported from __init__.py, it appears automatically in
the correct reference doc on the next mkdocs build.
"""

from __future__ import annotations

import types
from collections import defaultdict

import mkdocs_gen_files

import tealeaf

MODULE_TO_PAGE: dict[str, tuple[str, str]] = {
    "tealeaf.feature": ("reference/feature.md", "Feature"),
    "tealeaf.effect": ("reference/effect.md", "Effects"),
    "tealeaf.channel": ("reference/channel.md", "Dispatch Channel"),
    "tealeaf.state": ("reference/state.md", "State"),
    "tealeaf.view": ("reference/view.md", "View"),
    "tealeaf.scope": ("reference/scope.md", "Scope"),
    "tealeaf.config": ("reference/config.md", "Configuration"),
    "tealeaf.types": ("reference/types.md", "Types"),
}

pages: dict[str, list[str]] = defaultdict(list)
titles: dict[str, str] = {}

for name in tealeaf.__all__:
    obj = getattr(tealeaf, name)

    if isinstance(obj, types.ModuleType):
        continue

    module = getattr(obj, "__module__", None)
    if module is None:
        continue

    page_info = MODULE_TO_PAGE.get(module)
    if page_info is None:
        msg = f"tealeaf.__all__ exports '{name}' from unmapped module '{module}'"
        raise ValueError(msg)

    page_path, title = page_info
    pages[page_path].append(name)
    titles[page_path] = title

for page_path, symbols in sorted(pages.items()):
    title = titles[page_path]
    with mkdocs_gen_files.open(page_path, "w") as f:
        f.write(f"# {title}\n")
        for sym in symbols:
            f.write(f"\n::: tealeaf.{sym}\n")
