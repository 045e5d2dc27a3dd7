"""
Structural merge and unmerge of JSON object trees.

``merge`` applies a profile on top of an existing settings document;
``subtract_keys`` is its best-effort inverse, used when a project override is
cleared. Both return new trees and never mutate their arguments.

Known limitation of ``subtract_keys``: a leaf is removed whenever the overlay
has the same key, even if the value in ``base`` was written by someone else
and merely shares the key.
"""

from __future__ import annotations

import copy
from typing import Any


def merge(base: Any, overlay: Any) -> Any:
    """
    Overlay ``overlay`` onto ``base``.

    Objects on both sides merge recursively. Anything else (arrays, scalars,
    null, or an object meeting a non-object) is replaced wholesale by the
    overlay value. Keys only in ``base`` survive; keys only in ``overlay``
    are added.
    """
    if not (isinstance(base, dict) and isinstance(overlay, dict)):
        return copy.deepcopy(overlay)

    out = copy.deepcopy(base)
    for key, value in overlay.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = merge(out[key], value)
        else:
            out[key] = copy.deepcopy(value)
    return out


def subtract_keys(base: Any, overlay: Any) -> Any:
    """
    Remove from ``base`` every key that also appears in ``overlay``.

    Where both sides hold an object for a key, recurse instead, and drop the
    key only if the nested object ends up empty. Non-object inputs are
    returned unchanged.
    """
    if not (isinstance(base, dict) and isinstance(overlay, dict)):
        return copy.deepcopy(base)

    out = copy.deepcopy(base)
    for key, value in overlay.items():
        if key not in out:
            continue
        if isinstance(value, dict) and isinstance(out[key], dict):
            reduced = subtract_keys(out[key], value)
            if reduced:
                out[key] = reduced
            else:
                del out[key]
        else:
            del out[key]
    return out


def json_equal(a: Any, b: Any) -> bool:
    """
    Structural JSON equality.

    Object key order is ignored, array order is not. Unlike ``==`` on Python
    values, ``true`` never equals ``1`` and ``1`` never equals ``1.0``.
    """
    if isinstance(a, dict) and isinstance(b, dict):
        return a.keys() == b.keys() and all(json_equal(a[k], b[k]) for k in a)
    if isinstance(a, list) and isinstance(b, list):
        return len(a) == len(b) and all(json_equal(x, y) for x, y in zip(a, b))
    return type(a) is type(b) and a == b
