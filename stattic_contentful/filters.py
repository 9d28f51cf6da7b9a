"""
Entry filter predicates.

A filter is either a callable taking an Entry and returning a bool, or a
mapping written in Contentful's query syntax, for example::

    filter:
      fields.title[match]: rabbit
      sys.id[nin]: 1asN98Ph3mUiCYIYiiqwko,A96usFSlY4G0W4kwAqswk
      category: fiction

Every clause of a mapping must hold for the entry to pass.
"""

import operator
import re
from typing import Any, Callable, Mapping, Optional

from .errors import ConfigurationError, RenderError
from .models import Entry

Predicate = Callable[[Entry], bool]

_CLAUSE_RE = re.compile(r'^(?P<path>[^\[\]]+?)(?:\[(?P<op>[a-z]+)\])?$')

_ORDERING = {
    'lt': operator.lt,
    'lte': operator.le,
    'gt': operator.gt,
    'gte': operator.ge,
}

OPERATORS = {'eq', 'ne', 'in', 'nin', 'exists', 'match'} | set(_ORDERING)


def _as_list(value):
    if isinstance(value, str):
        return [part.strip() for part in value.split(',')]
    if isinstance(value, (list, tuple, set)):
        return list(value)
    return [value]


def _equals(actual, expected):
    if isinstance(actual, list) and not isinstance(expected, list):
        return expected in actual
    return actual == expected


def _contains_any(actual, expected):
    candidates = _as_list(expected)
    if isinstance(actual, list):
        return any(item in candidates for item in actual)
    return actual in candidates


def _clause(path: str, op: str, expected: Any) -> Predicate:
    if op == 'exists':
        wanted = expected if isinstance(expected, bool) else str(expected).lower() == 'true'
        return lambda entry: entry.has(path) == wanted

    def check(entry: Entry) -> bool:
        actual = entry.lookup(path)
        if op == 'eq':
            return _equals(actual, expected)
        if op == 'ne':
            return not _equals(actual, expected)
        if op == 'in':
            return _contains_any(actual, expected)
        if op == 'nin':
            return not _contains_any(actual, expected)
        if op == 'match':
            return str(expected).lower() in str(actual).lower()
        try:
            return _ORDERING[op](actual, expected)
        except TypeError as e:
            raise RenderError(
                f"Cannot compare field '{path}' of entry {entry.id} with {expected!r}: {e}",
                entry_id=entry.id,
                field=path,
            )

    return check


def compile_filter(option: Any) -> Optional[Predicate]:
    """
    Turn a filter option into a predicate.

    Args:
        option: None, a callable, or a mapping of ``path[op]`` clauses

    Returns:
        A predicate over entries, or None when no filter is configured

    Raises:
        ConfigurationError: If the filter is malformed or uses an unknown operator
    """
    if option is None:
        return None

    if callable(option):
        def call(entry: Entry) -> bool:
            try:
                return bool(option(entry))
            except (KeyError, AttributeError) as e:
                raise RenderError(
                    f"Filter failed for entry {entry.id}: missing field {e}",
                    entry_id=entry.id,
                )
        return call

    if not isinstance(option, Mapping):
        raise ConfigurationError(f"Filter must be a mapping or a callable, got {type(option).__name__}")

    clauses = []
    for key, expected in option.items():
        match = _CLAUSE_RE.match(str(key).strip())
        if not match:
            raise ConfigurationError(f"Invalid filter clause: {key!r}")
        op = match.group('op') or 'eq'
        if op not in OPERATORS:
            raise ConfigurationError(f"Unknown filter operator '{op}' in clause {key!r}")
        clauses.append(_clause(match.group('path'), op, expected))

    return lambda entry: all(clause(entry) for clause in clauses)
