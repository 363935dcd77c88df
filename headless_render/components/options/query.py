"""
Translates flat query parameters into the nested request shape.

``viewport.width=800&pdf.margin.top=1cm`` becomes
``{"viewport": {"width": "800"}, "pdf": {"margin": {"top": "1cm"}}}``.
Values stay strings; typing happens in the normalizer.
"""
from typing import Any, Dict, Mapping


def options_from_query(query: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Builds a nested request mapping from dotted query keys.

    Empty values are skipped so that defaults apply. When a key is both a
    scalar and a prefix (``pdf=x&pdf.scale=2``), the nested form wins.
    """
    nested: Dict[str, Any] = {}
    for raw_key, value in query.items():
        if value is None or value == "":
            continue
        parts = [part for part in str(raw_key).split(".") if part]
        if not parts:
            continue
        node = nested
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        if isinstance(node.get(parts[-1]), dict):
            continue
        node[parts[-1]] = value
    return nested
