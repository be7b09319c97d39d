"""
Filter expressions for scalar-field predicates.

Predicates are written in the store's filter grammar:

    author="jerry" and (page > 10 or tags include ("a", "b"))

Filter combines raw fragments into a small expression tree and renders it
back to text on cond(), adding parentheses only where the operator precedence
of the grammar (not > and > or) would otherwise change the meaning:

    Filter('author="jerry" or a=1').and_("b=2 or c=3").cond()
    # -> '(author="jerry" or a=1) and (b=2 or c=3)'

Filters are immutable; every combinator returns a new one.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional, Union

from .types import NumberToken, TypedValue

# Binding strength, loosest first
_OR, _AND, _ATOM = 1, 2, 3


def top_level_connective(text: str) -> Optional[str]:
    """
    Return the loosest connective (``"or"`` / ``"and"``) outside any
    parentheses or string literal in ``text``, or None.
    """
    depth = 0
    quote = None
    found_and = False
    i, n = 0, len(text)
    while i < n:
        c = text[i]
        if quote:
            if c == "\\":
                i += 2
                continue
            if c == quote:
                quote = None
        elif c in "\"'":
            quote = c
        elif c == "(":
            depth += 1
        elif c == ")":
            depth = max(depth - 1, 0)
        elif depth == 0 and (c.isalpha() or c == "_") and (i == 0 or not _is_word_char(text[i - 1])):
            j = i
            while j < n and _is_word_char(text[j]):
                j += 1
            word = text[i:j].lower()
            if word == "or":
                return "or"
            if word == "and":
                found_and = True
            i = j
            continue
        i += 1
    return "and" if found_and else None


def _is_word_char(c: str) -> bool:
    return c.isalnum() or c == "_"


# -----------------------------------------------------------------------------
# Expression tree
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class Clause:
    """A raw predicate fragment."""
    text: str

    @property
    def level(self) -> int:
        connective = top_level_connective(self.text)
        if connective == "or":
            return _OR
        if connective == "and":
            return _AND
        return _ATOM


@dataclass(frozen=True)
class And:
    operands: tuple["Node", ...]
    level = _AND


@dataclass(frozen=True)
class Or:
    operands: tuple["Node", ...]
    level = _OR


@dataclass(frozen=True)
class Not:
    operand: "Node"
    level = _ATOM


Node = Union[Clause, And, Or, Not]


def render(node: Node, min_level: int = _OR) -> str:
    """Render a tree, parenthesizing it if it binds looser than ``min_level``."""
    if isinstance(node, Clause):
        text = node.text.strip()
    elif isinstance(node, And):
        text = " and ".join(render(op, _AND) for op in node.operands)
    elif isinstance(node, Or):
        text = " or ".join(render(op, _OR) for op in node.operands)
    else:
        text = "not " + render(node.operand, _ATOM)
    if node.level < min_level:
        return f"({text})"
    return text


def _join(kind: type, left: Node, right: Node) -> Node:
    # same-connective chains stay flat: a and b and c
    ops = left.operands if isinstance(left, kind) else (left,)
    ops += right.operands if isinstance(right, kind) else (right,)
    return kind(ops)


FilterLike = Union["Filter", str, None]


def _as_node(value: FilterLike) -> Optional[Node]:
    if isinstance(value, Filter):
        return value.node
    if value is None or not value.strip():
        return None
    return Clause(value)


@dataclass(frozen=True)
class Filter:
    """
    An immutable boolean predicate.

    An empty filter (``Filter()`` or ``Filter("")``) matches everything and
    renders to the empty string.
    """
    node: Optional[Node] = None

    def __init__(self, fragment: FilterLike = ""):
        object.__setattr__(self, "node", _as_node(fragment))

    @classmethod
    def _of(cls, node: Optional[Node]) -> "Filter":
        f = cls()
        object.__setattr__(f, "node", node)
        return f

    def _combine(self, kind: type, other: FilterLike, negate: bool) -> "Filter":
        node = _as_node(other)
        if node is None:
            return self
        if negate:
            node = Not(node)
        if self.node is None:
            return Filter._of(node)
        return Filter._of(_join(kind, self.node, node))

    def and_(self, other: FilterLike) -> "Filter":
        """``self and other``, e.g. ``Filter('k1="v"').and_("k2=0")``."""
        return self._combine(And, other, negate=False)

    def or_(self, other: FilterLike) -> "Filter":
        """``self or other``."""
        return self._combine(Or, other, negate=False)

    def and_not(self, other: FilterLike) -> "Filter":
        """``self and not other``."""
        return self._combine(And, other, negate=True)

    def or_not(self, other: FilterLike) -> "Filter":
        """``self or not other``."""
        return self._combine(Or, other, negate=True)

    def negate(self) -> "Filter":
        if self.node is None:
            return self
        return Filter._of(Not(self.node))

    __and__ = and_
    __or__ = or_
    __invert__ = negate

    def cond(self) -> str:
        """The predicate as sent on the wire."""
        if self.node is None:
            return ""
        return render(self.node)

    @property
    def connective(self) -> Optional[str]:
        """Top-level connective of the rendered predicate, if any."""
        if self.node is None or isinstance(self.node, Not):
            return None
        if isinstance(self.node, Clause):
            return top_level_connective(self.node.text)
        return "and" if isinstance(self.node, And) else "or"

    def __bool__(self) -> bool:
        return self.node is not None

    def __str__(self) -> str:
        return self.cond()

    def __repr__(self) -> str:
        return f"Filter({self.cond()!r})"


def new_filter(fragment: str = "") -> Filter:
    return Filter(fragment)


def cond_of(value: FilterLike) -> str:
    """Predicate text for a Filter, a raw fragment or None."""
    if value is None:
        return ""
    if isinstance(value, Filter):
        return value.cond()
    return value.strip()


# -----------------------------------------------------------------------------
# List predicates
# -----------------------------------------------------------------------------

def _quote(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def _literal(value: Any) -> str:
    if isinstance(value, TypedValue):
        value = value.raw
    if isinstance(value, NumberToken):
        return str(value)
    if isinstance(value, str):
        return _quote(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    return _quote(str(value))


def _list_predicate(field: str, op: str, values: Iterable[Any]) -> str:
    if isinstance(values, (str, bytes)) or not isinstance(values, Iterable):
        return ""
    items = [_literal(v) for v in values]
    if not items:
        return ""
    return f"{field} {op} ({', '.join(items)})"


def in_(field: str, values: Iterable[Any]) -> str:
    """``field in (v1, v2, ...)``; empty string for an empty list."""
    return _list_predicate(field, "in", values)


def not_in(field: str, values: Iterable[Any]) -> str:
    return _list_predicate(field, "not in", values)


def include(field: str, values: Iterable[Any]) -> str:
    """Array field contains any of ``values``."""
    return _list_predicate(field, "include", values)


def exclude(field: str, values: Iterable[Any]) -> str:
    """Array field contains none of ``values``."""
    return _list_predicate(field, "exclude", values)


def include_all(field: str, values: Iterable[Any]) -> str:
    """Array field contains every one of ``values``."""
    return _list_predicate(field, "include all", values)
