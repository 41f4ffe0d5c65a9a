"""Bind-value flattening.

Lets callers pass parameters as varargs, as one list, or as nested lists
interchangeably::

    flat_array(1, [2, [3]], "4")  # [1, 2, 3, "4"]

Only lists and tuples are descended into. Strings, bytes, mappings and
every other object are single bind values.
"""

from typing import Any


def flat_array(*args: Any) -> list[Any]:
    """Flatten ``args`` depth-first, left to right."""
    flat: list[Any] = []
    for arg in args:
        if isinstance(arg, (list, tuple)):
            flat.extend(flat_array(*arg))
        else:
            flat.append(arg)
    return flat
