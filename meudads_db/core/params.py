"""Positional parameter translation.

Callers write placeholders the way the legacy edge database accepted them:
``?`` (sequential), ``?N`` or ``$N`` (numbered, 1-based). Drivers want their
own paramstyle: psycopg takes ``%s`` (``format``), sqlite3 takes ``?``
(``qmark``). Numbered placeholders are flattened to sequential ones and the
parameter tuple is reordered to match.

String literals and quoted identifiers are left untouched.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from functools import lru_cache
from typing import Any

from meudads_db.core.exceptions import ParameterBindingError

# ?, ?N or $N. $N must not be preceded by a word char ($ in identifiers).
_PLACEHOLDER_PATTERN = re.compile(r"\?(\d*)|(?<![\w$])\$(\d+)")

# Single-quoted literals ('' escapes) and double-quoted identifiers
_QUOTED_PATTERN = re.compile(r"'(?:[^']|'')*'|\"(?:[^\"]|\"\")*\"")

_MARKERS = {"format": "%s", "qmark": "?"}


@lru_cache(maxsize=512)
def _compile(sql: str, paramstyle: str) -> tuple[str, tuple[int, ...] | None, int]:
    """Translate placeholders once per (sql, paramstyle).

    Returns ``(sql, order, expected)``. *order* maps each output placeholder
    to an input parameter index, or is ``None`` when placeholders are purely
    sequential. *expected* is the number of parameters the statement needs.
    """
    marker = _MARKERS[paramstyle]
    escape = paramstyle == "format"
    order: list[int] = []
    sequential = 0
    numbered = False
    parts: list[str] = []

    def substitute(match: re.Match[str]) -> str:
        nonlocal sequential, numbered
        number = match.group(1) or match.group(2)
        if number:
            numbered = True
            order.append(int(number) - 1)
        else:
            order.append(sequential)
            sequential += 1
        return marker

    last_end = 0
    for match in _QUOTED_PATTERN.finditer(sql):
        start, end = match.span()
        if start > last_end:
            segment = sql[last_end:start]
            if escape:
                segment = segment.replace("%", "%%")
            parts.append(_PLACEHOLDER_PATTERN.sub(substitute, segment))
        literal = match.group()
        parts.append(literal.replace("%", "%%") if escape else literal)
        last_end = end

    if last_end < len(sql):
        segment = sql[last_end:]
        if escape:
            segment = segment.replace("%", "%%")
        parts.append(_PLACEHOLDER_PATTERN.sub(substitute, segment))

    if numbered and sequential:
        raise ParameterBindingError(sql, "cannot mix '?' with numbered placeholders")

    if not order:
        return sql, None, 0
    if numbered:
        if min(order) < 0:
            raise ParameterBindingError(sql, "placeholders are numbered from 1")
        return "".join(parts), tuple(order), max(order) + 1
    return "".join(parts), None, sequential


def count_placeholders(sql: str) -> int:
    """Number of parameters *sql* expects."""
    return _compile(sql, "qmark")[2]


def bind_positional(
    sql: str,
    params: Sequence[Any],
    paramstyle: str,
) -> tuple[str, tuple[Any, ...] | None]:
    """Translate *sql* to *paramstyle* and line *params* up with it.

    Statements without placeholders are passed through untouched with
    ``None`` parameters, so drivers skip placeholder parsing entirely
    (psycopg would otherwise require ``%`` to be escaped).

    Raises:
        ParameterBindingError: If the parameter count does not match.
    """
    if paramstyle not in _MARKERS:
        raise ParameterBindingError(sql, f"unsupported paramstyle '{paramstyle}'")

    converted, order, expected = _compile(sql, paramstyle)
    if len(params) != expected:
        raise ParameterBindingError(
            sql, f"expected {expected} parameters, got {len(params)}"
        )
    if expected == 0:
        return sql, None
    if order is None:
        return converted, tuple(params)
    return converted, tuple(params[index] for index in order)


def coerce_params(params: Sequence[Any] | Any | None) -> tuple[Any, ...]:
    """Normalize *params* to a tuple.

    * ``None`` → empty tuple.
    * ``tuple`` / ``list`` → tuple.
    * Any other scalar (strings included) → single-element tuple.
    """
    if params is None:
        return ()
    if isinstance(params, (tuple, list)):
        return tuple(params)
    return (params,)
