"""Dotted-path resolution over untyped payload trees.

A node is a plain value, a mapping, or a zero-argument producer. Producers
are invoked transparently while walking, so accessors and lazily computed
sections can sit anywhere in a path. Absence is a value (``MISSING`` or the
caller's default), never an exception.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from functools import singledispatch
from typing import Any


class _Missing:
    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


def path_segments(path: str | Sequence[str]) -> list[str]:
    """Split a dotted path; sequences are taken as pre-split keys."""
    if isinstance(path, str):
        return path.split(".") if path else []
    if isinstance(path, Sequence):
        return [str(key) for key in path]
    raise TypeError(f"path must be a string or a sequence of keys, got {type(path).__name__}")


@singledispatch
def child(node: Any, key: str) -> Any:
    """Return ``node[key]`` for traversable nodes, ``MISSING`` otherwise."""
    return MISSING


@child.register(Mapping)
def _mapping_child(node: Mapping, key: str) -> Any:
    if key in node:
        return node[key]
    return MISSING


def realize(node: Any) -> Any:
    """Invoke a zero-argument producer; other nodes pass through."""
    if callable(node) and not isinstance(node, Mapping):
        return node()
    return node


def is_traversable(node: Any) -> bool:
    if callable(node) or isinstance(node, Mapping):
        return True
    return child.dispatch(type(node)) is not child.dispatch(object)


def resolve(tree: Any, path: str | Sequence[str], default: Any = None) -> Any:
    """Walk ``path`` through ``tree``.

    Returns the terminal value (``None`` and other falsy values included) or
    ``default`` when any segment is missing or lands on a value that cannot
    be descended into.
    """
    if not is_traversable(tree):
        raise TypeError(f"cannot resolve a path against {type(tree).__name__}")

    node = tree
    for key in path_segments(path):
        node = child(realize(node), key)
        if node is MISSING:
            return default
    return realize(node)
