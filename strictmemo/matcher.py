"""
strictmemo/matcher.py
═════════════════════

Recognizes the obsolete two-statement memoization idiom::

    @foo = T.let(@foo, T.nilable(Foo))     # reset statement
    @foo ||= Foo.new                       # or-assign statement

and its mistaken ``nil`` variant::

    @foo = T.let(nil, T.nilable(Foo))
    @foo ||= Foo.new

The nil variant discards the cached value on every call; it is reported
and corrected the same way.

The two statements must be neighbours in the same statement sequence.
Blank lines between them are fine; a comment or any other statement is
not.  ``@foo ||= T.let(Foo.new, ...)`` is the corrected form and never
matches.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence

from strictmemo.nodes import (
    Assign,
    Body,
    Call,
    Constant,
    InstanceVar,
    Node,
    NodeKind,
    OrAssign,
    iter_methods,
    iter_statement_sequences,
)

logger = logging.getLogger(__name__)

ASSERTION_RECEIVER = "T"
ASSERTION_METHOD = "let"


@dataclass(frozen=True, slots=True)
class MemoizationCandidate:
    ivar_name: str
    reset_statement: Assign
    or_assign_statement: OrAssign
    assertion_call: Call
    assertion_call_name: str
    type_expr: Node
    init_expr: Node
    discards_cached_value: bool = False


def _assertion_call(value: Node) -> Optional[Call]:
    """``value`` if it is ``T.let(a, b)`` or ``::T.let(a, b)``."""
    if not isinstance(value, Call):
        return None
    if value.method != ASSERTION_METHOD or not value.parenthesized or value.block is not None:
        return None
    receiver = value.receiver
    if not isinstance(receiver, Constant) or receiver.scope is not None:
        return None
    if receiver.name != ASSERTION_RECEIVER or len(value.args) != 2:
        return None
    return value


def match_pair(first: Node, second: Node) -> Optional[MemoizationCandidate]:
    """The candidate formed by ``first`` followed by ``second``, if any."""
    if not isinstance(first, Assign) or not isinstance(first.target, InstanceVar):
        return None
    if not isinstance(second, OrAssign) or not isinstance(second.target, InstanceVar):
        return None
    name = first.target.name
    if second.target.name != name:
        return None
    call = _assertion_call(first.value)
    if call is None:
        return None
    cached, type_expr = call.args
    if isinstance(cached, InstanceVar) and cached.name == name:
        discards = False
    elif cached.kind is NodeKind.NIL:
        discards = True
    else:
        return None
    return MemoizationCandidate(
        ivar_name=name,
        reset_statement=first,
        or_assign_statement=second,
        assertion_call=call,
        assertion_call_name=f"{call.receiver.qualified_name}.{call.method}",
        type_expr=type_expr,
        init_expr=second.value,
        discards_cached_value=discards,
    )


class PatternMatcher:
    """Finds memoization candidates in statement sequences."""

    def find_candidates(self, body: Sequence[Node]) -> List[MemoizationCandidate]:
        found: List[MemoizationCandidate] = []
        for first, second in zip(body, body[1:]):
            candidate = match_pair(first, second)
            if candidate is not None:
                found.append(candidate)
        return found

    def scan(self, program: Node) -> List[MemoizationCandidate]:
        """Every candidate in every method body of ``program``, in source order."""
        found: List[MemoizationCandidate] = []
        for body in iter_method_bodies(program):
            found.extend(self.find_candidates(body))
        found.sort(key=lambda c: c.reset_statement.span.start)
        logger.debug("found %d memoization candidate(s)", len(found))
        return found


def iter_method_bodies(program: Node) -> Iterator[Body]:
    """Statement sequences belonging to method bodies, nested ones included."""
    for method in iter_methods(program):
        yield from iter_statement_sequences(method)
