"""
Option normalization for render requests.

Turns a partial, loosely-typed request mapping into a complete `RenderOptions`
by deep-merging it over a table of documented defaults. Normalization never
raises: fields that fail validation fall back to their defaults. The output
kind is the one exception to leniency, and its validation is left to the
artifact capturer.
"""
import copy
from typing import Any, Dict, Mapping, Optional, Sequence

from pydantic import ValidationError

from headless_render.components.options.models import RenderOptions, to_camel
from headless_render.core.logger import get_logger

logger = get_logger(__name__)

# Documented defaults, keyed the way clients send them.
DEFAULT_OPTIONS: Dict[str, Any] = {
    "cookies": [],
    "scrollPage": False,
    "emulateScreenMedia": True,
    "ignoreHttpsErrors": False,
    "cacheEnabled": True,
    "html": None,
    "viewport": {
        "width": 1600,
        "height": 1200,
    },
    "goto": {
        "waitUntil": "networkidle",
    },
    "output": "pdf",
    "pdf": {
        "format": "A4",
        "printBackground": True,
    },
    "screenshot": {
        "type": "png",
        "fullPage": True,
    },
    "failEarly": False,
    "waitFor": 6000,
}

_MISSING = object()
_MAX_REPAIRS = 3


def camelize_keys(value: Any) -> Any:
    """Recursively rewrites mapping keys from snake_case to camelCase."""
    if isinstance(value, Mapping):
        return {to_camel(str(k)): camelize_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [camelize_keys(item) for item in value]
    return value


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Returns a new dict with `override` merged over `base`.

    Nested mappings merge field by field, lists and scalars replace, and
    `None` in `override` counts as absent.
    """
    merged = copy.deepcopy(dict(base))
    for key, value in override.items():
        if value is None:
            continue
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def defaults_from_config(config: Any) -> Dict[str, Any]:
    """Builds the defaults table, applying any `render.defaults` overrides from configuration."""
    overrides = config.get("render.defaults") if config is not None else None
    if not isinstance(overrides, Mapping) or not overrides:
        return copy.deepcopy(DEFAULT_OPTIONS)
    return deep_merge(DEFAULT_OPTIONS, camelize_keys(overrides))


def normalize_options(request: Optional[Mapping[str, Any]],
                      defaults: Optional[Mapping[str, Any]] = None) -> RenderOptions:
    """
    Merges a partial request into a complete rendering configuration.

    Explicit pixel dimensions win over a named paper format: when the request
    carries both `pdf.width` and `pdf.height`, `pdf.format` is cleared.

    Args:
        request: The partial request. camelCase and snake_case keys are both accepted.
        defaults: The defaults table. Uses `DEFAULT_OPTIONS` when omitted.

    Returns:
        RenderOptions: The fully-specified configuration.
    """
    partial = camelize_keys(dict(request or {}))
    base = DEFAULT_OPTIONS if defaults is None else defaults
    merged = deep_merge(base, partial)

    pdf_request = partial.get("pdf")
    if isinstance(pdf_request, Mapping) and pdf_request.get("width") and pdf_request.get("height"):
        # A named format would override the explicit size.
        merged.setdefault("pdf", {})["format"] = None

    return _validate_leniently(merged, base)


def describe_options(options: RenderOptions) -> Dict[str, Any]:
    """Returns a log-friendly view of the options with inline markup and cookie values hidden."""
    described = options.model_dump(mode="json", by_alias=True, exclude_none=True)
    if options.html:
        described["html"] = "..."
    described["cookies"] = [
        {**cookie, "value": "***"} if "value" in cookie else cookie
        for cookie in described.get("cookies", [])
    ]
    return described


def _validate_leniently(merged: Dict[str, Any], defaults: Mapping[str, Any]) -> RenderOptions:
    for _ in range(_MAX_REPAIRS):
        try:
            return RenderOptions.model_validate(merged)
        except ValidationError as exc:
            for error in exc.errors():
                path = _field_path(error["loc"])
                logger.debug(f"Ignoring invalid option '{'.'.join(path)}': {error['msg']}")
                _restore_default(merged, path, defaults)
    return RenderOptions.model_validate(merged)


def _field_path(loc: Sequence[Any]) -> Sequence[str]:
    path = []
    for part in loc:
        if not isinstance(part, str):
            break
        path.append(part)
    return path or [str(loc[0])]


def _lookup(source: Mapping[str, Any], path: Sequence[str]) -> Any:
    node: Any = source
    for key in path:
        if not isinstance(node, Mapping) or key not in node:
            return _MISSING
        node = node[key]
    return node


def _restore_default(target: Dict[str, Any], path: Sequence[str], defaults: Mapping[str, Any]) -> None:
    parent = _lookup(target, path[:-1]) if len(path) > 1 else target
    if not isinstance(parent, dict):
        # The container itself is malformed; restore it wholesale.
        path = path[:1]
        parent = target
    key = path[-1]
    default = _lookup(defaults, path)
    if default is _MISSING:
        parent.pop(key, None)
    else:
        parent[key] = copy.deepcopy(default)
