"""
Structural diff between two configuration snapshots.

Values are classified as records (dataclasses, pydantic models, plain
objects), maps, sequences or scalars and walked recursively. Every leaf
whose value differs is reported with its path, in traversal order.
"""

import dataclasses
from enum import Enum
from typing import Any, Iterator, List, Mapping, NamedTuple, Tuple

from pydantic import BaseModel

from .errors import DiffError

Path = Tuple[Any, ...]

_MISSING = object()
_SCALARS = (str, bytes, bool, int, float, complex, Enum)


class Kind(str, Enum):
    """Shape of a value as seen by the differ."""
    NONE = "none"
    RECORD = "record"
    MAP = "map"
    SEQUENCE = "sequence"
    SCALAR = "scalar"


class Change(NamedTuple):
    """A single differing leaf."""
    kind: str  # "create", "update" or "delete"
    path: Path
    old: Any
    new: Any


def classify(value: Any) -> Kind:
    """Return the shape of a value."""
    if value is None:
        return Kind.NONE
    if isinstance(value, BaseModel):
        return Kind.RECORD
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return Kind.RECORD
    if isinstance(value, Mapping):
        return Kind.MAP
    if isinstance(value, (list, tuple)):
        return Kind.SEQUENCE
    if isinstance(value, _SCALARS):
        return Kind.SCALAR
    if hasattr(value, "__dict__") and not isinstance(value, type):
        return Kind.RECORD
    return Kind.SCALAR


def _fields(record: Any) -> List[Tuple[str, Any]]:
    """Record fields in declaration order."""
    if isinstance(record, BaseModel):
        return [(name, getattr(record, name)) for name in type(record).model_fields]
    if dataclasses.is_dataclass(record):
        return [(field.name, getattr(record, field.name)) for field in dataclasses.fields(record)]
    return [(name, value) for name, value in vars(record).items() if not name.startswith("_")]


def _items(value: Any, kind: Kind) -> Iterator[Tuple[Any, Any]]:
    if kind is Kind.RECORD:
        return iter(_fields(value))
    if kind is Kind.MAP:
        return iter(value.items())
    return enumerate(value)


def _leaves(value: Any, path: Path) -> Iterator[Tuple[Path, Any]]:
    """Yield every leaf below value; empty containers and scalars are leaves themselves."""
    kind = classify(value)
    if kind in (Kind.NONE, Kind.SCALAR):
        yield path, value
        return

    empty = True
    for key, item in _items(value, kind):
        empty = False
        yield from _leaves(item, path + (key,))
    if empty:
        yield path, value


def _scalar_type(value: Any) -> type:
    # bool is an int subclass but never comparable with numbers here
    if isinstance(value, bool):
        return bool
    if isinstance(value, (int, float)):
        return float
    return type(value)


def _walk(a: Any, b: Any, path: Path, changes: List[Change]) -> None:
    if a is _MISSING:
        changes.extend(Change("create", p, None, v) for p, v in _leaves(b, path))
        return
    if b is _MISSING:
        changes.extend(Change("delete", p, v, None) for p, v in _leaves(a, path))
        return

    kind_a, kind_b = classify(a), classify(b)

    if kind_a is Kind.NONE or kind_b is Kind.NONE:
        if kind_a is kind_b:
            return
        if kind_a is Kind.NONE:
            changes.extend(Change("update", p, None, v) for p, v in _leaves(b, path))
        else:
            changes.extend(Change("update", p, v, None) for p, v in _leaves(a, path))
        return

    if kind_a is not kind_b:
        raise DiffError(path, f"cannot compare {type(a).__name__} with {type(b).__name__}")

    if kind_a is Kind.RECORD:
        if type(a) is not type(b):
            raise DiffError(path, f"record types differ: {type(a).__name__} != {type(b).__name__}")
        _walk_mapping(dict(_fields(a)), dict(_fields(b)), path, changes)
    elif kind_a is Kind.MAP:
        _walk_mapping(a, b, path, changes)
    elif kind_a is Kind.SEQUENCE:
        for index in range(max(len(a), len(b))):
            left = a[index] if index < len(a) else _MISSING
            right = b[index] if index < len(b) else _MISSING
            _walk(left, right, path + (index,), changes)
    else:
        if _scalar_type(a) is not _scalar_type(b):
            raise DiffError(path, f"cannot compare {type(a).__name__} with {type(b).__name__}")
        if a != b:
            changes.append(Change("update", path, a, b))


def _walk_mapping(a: Mapping, b: Mapping, path: Path, changes: List[Change]) -> None:
    for key, left in a.items():
        _walk(left, b.get(key, _MISSING), path + (key,), changes)
    for key, right in b.items():
        if key not in a:
            _walk(_MISSING, right, path + (key,), changes)


def diff(a: Any, b: Any) -> List[Change]:
    """
    Compare two configuration values.

    Args:
        a: Previous value
        b: Current value

    Returns:
        Changes for every differing leaf, in traversal order

    Raises:
        DiffError: If the values have incompatible shapes at some position
    """
    changes: List[Change] = []
    _walk(a, b, (), changes)
    return changes


def join_path(path: Path) -> str:
    """Render path segments as a dotted string, indices as decimal numbers."""
    return ".".join(str(segment) for segment in path)


def changed_paths(a: Any, b: Any) -> List[str]:
    """Dotted paths of every leaf that differs between a and b."""
    return [join_path(change.path) for change in diff(a, b)]
