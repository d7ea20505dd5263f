"""
Metadata filters for vector queries.

A filter is a mapping of metadata field to condition; every field must match.
Conditions compile to a closed set of predicates:

    {"author": "Jane Smith"}                  -> Eq
    {"author": {"$eq": "Jane Smith"}}         -> Eq
    {"author": {"$in": ["John", "Jane"]}}     -> In
    {"author": {"$regex": "John|Jane"}}       -> Regex
    {"title": {"$regex": "^deep", "$options": "i"}}

Field names may be dotted paths into nested metadata ("details.lang").
When the stored value is a list, Eq and In match if any element matches.
Booleans never equal numbers (True does not match 1); ints and floats
compare by value (1 matches 1.0).
"""

import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence, Tuple, Union

from .errors import InvalidArgumentError

_MISSING = object()

_REGEX_FLAGS = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "x": re.VERBOSE,
}

_OPERATORS = ("$eq", "$in", "$regex", "$options")


def _same(a: Any, b: Any) -> bool:
    """Equality that keeps bools apart from numbers, recursing into containers."""
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if isinstance(a, (list, tuple)) and isinstance(b, (list, tuple)):
        return len(a) == len(b) and all(_same(x, y) for x, y in zip(a, b))
    if isinstance(a, Mapping) and isinstance(b, Mapping):
        return a.keys() == b.keys() and all(_same(a[k], b[k]) for k in a)
    return a == b


def _contains(values: Sequence[Any], item: Any) -> bool:
    return any(_same(item, v) for v in values)


@dataclass(frozen=True)
class Eq:
    field: str
    value: Any

    def matches(self, metadata: Mapping[str, Any]) -> bool:
        actual = _lookup(metadata, self.field)
        if actual is _MISSING:
            return self.value is None
        if isinstance(actual, list) and not isinstance(self.value, list):
            return _contains(actual, self.value)
        return _same(actual, self.value)


@dataclass(frozen=True)
class In:
    field: str
    values: Tuple[Any, ...]

    def matches(self, metadata: Mapping[str, Any]) -> bool:
        actual = _lookup(metadata, self.field)
        if actual is _MISSING:
            return _contains(self.values, None)
        if isinstance(actual, list):
            return any(_contains(self.values, item) for item in actual)
        return _contains(self.values, actual)


@dataclass(frozen=True)
class Regex:
    field: str
    pattern: re.Pattern

    def matches(self, metadata: Mapping[str, Any]) -> bool:
        actual = _lookup(metadata, self.field)
        if isinstance(actual, str):
            return self.pattern.search(actual) is not None
        if isinstance(actual, list):
            return any(isinstance(item, str) and self.pattern.search(item) is not None for item in actual)
        return False


Predicate = Union[Eq, In, Regex]


def _lookup(metadata: Mapping[str, Any], path: str) -> Any:
    """Resolve a (possibly dotted) field path, returning _MISSING if absent."""
    if path in metadata:
        return metadata[path]

    current: Any = metadata
    for part in path.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return _MISSING
        current = current[part]
    return current


def _compile_regex(field: str, pattern: Any, options: Any) -> Regex:
    if not isinstance(pattern, str):
        raise InvalidArgumentError(f"$regex for field '{field}' must be a string")

    flags = 0
    if options is not None:
        if not isinstance(options, str):
            raise InvalidArgumentError(f"$options for field '{field}' must be a string")
        for option in options:
            if option not in _REGEX_FLAGS:
                raise InvalidArgumentError(f"Unsupported $options flag '{option}' for field '{field}'")
            flags |= _REGEX_FLAGS[option]

    try:
        return Regex(field, re.compile(pattern, flags))
    except re.error as e:
        raise InvalidArgumentError(f"Invalid $regex for field '{field}': {e}") from e


def _compile_condition(field: str, condition: Any) -> Tuple[Predicate, ...]:
    is_operator_dict = isinstance(condition, Mapping) and any(
        isinstance(k, str) and k.startswith("$") for k in condition
    )
    if not is_operator_dict:
        return (Eq(field, condition),)

    unknown = [k for k in condition if k not in _OPERATORS]
    if unknown:
        raise InvalidArgumentError(f"Unsupported filter operator(s) for field '{field}': {unknown}")
    if "$options" in condition and "$regex" not in condition:
        raise InvalidArgumentError(f"$options requires $regex for field '{field}'")

    predicates = []
    if "$eq" in condition:
        predicates.append(Eq(field, condition["$eq"]))
    if "$in" in condition:
        values = condition["$in"]
        if isinstance(values, (str, bytes)) or not isinstance(values, (list, tuple, set, frozenset)):
            raise InvalidArgumentError(f"$in for field '{field}' must be a list of values")
        predicates.append(In(field, tuple(values)))
    if "$regex" in condition:
        predicates.append(_compile_regex(field, condition["$regex"], condition.get("$options")))
    return tuple(predicates)


def parse_filter(filter: Optional[Mapping[str, Any]]) -> Tuple[Predicate, ...]:
    """
    Compile a filter mapping into predicates.

    Args:
        filter: Mapping of field -> condition, or None for no filtering

    Returns:
        Tuple of predicates that must all match

    Raises:
        InvalidArgumentError: If the filter is malformed
    """
    if filter is None:
        return ()
    if not isinstance(filter, Mapping):
        raise InvalidArgumentError(f"filter must be a mapping, got {type(filter).__name__}")

    predicates = []
    for field, condition in filter.items():
        if not isinstance(field, str) or not field:
            raise InvalidArgumentError(f"filter field names must be non-empty strings, got {field!r}")
        if field.startswith("$"):
            raise InvalidArgumentError(f"Top-level filter operator '{field}' is not supported")
        predicates.extend(_compile_condition(field, condition))
    return tuple(predicates)


def matches_all(predicates: Sequence[Predicate], metadata: Mapping[str, Any]) -> bool:
    """True when metadata satisfies every predicate (vacuously true if none)."""
    return all(p.matches(metadata) for p in predicates)
