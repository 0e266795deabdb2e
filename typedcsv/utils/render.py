"""
Display helper for rows.

``render`` is independent of the parser: it formats any tuple, typed Row or
NamedTuple instance as ``(f0,f1,...,fn)`` using ``str()`` on each value.

Usage::

    render((1, 2, "hello"))   # → "(1,2,hello)"
"""

from __future__ import annotations

from typing import Any, Iterable


def render(row: Iterable[Any], separator: str = ",") -> str:
    """Render ``row`` as ``(f0,f1,...,fn)``, fields joined by ``separator``, no trailing separator."""
    return "(" + separator.join(str(value) for value in row) + ")"
