from __future__ import annotations

import importlib
from typing import Any, Mapping, Optional


def load_symbol(dotted: str, aliases: Optional[Mapping[str, str]] = None) -> Any:
    """
    Load a class or function from a dotted path.
    Supports "package.module:ClassName", "package.module.ClassName", and
    short names listed in ``aliases`` (e.g. "static" -> "...fetchers.static:StaticFetcher").
    Raises ValueError when the path cannot be resolved.
    """
    if aliases and dotted in aliases:
        dotted = aliases[dotted]

    if ":" in dotted:
        module_name, symbol_name = dotted.split(":", 1)
    elif "." in dotted:
        module_name, symbol_name = dotted.rsplit(".", 1)
    else:
        known = ", ".join(sorted(aliases)) if aliases else "none"
        raise ValueError(f"Cannot load {dotted!r}: expected module:Name (known names: {known})")

    try:
        module = importlib.import_module(module_name)
        return getattr(module, symbol_name)
    except (ImportError, AttributeError) as exc:
        raise ValueError(f"Cannot load {dotted!r}: {exc}") from exc
