"""
livevars.valueset
=================

Ordered, duplicate-free, immutable sets of :class:`~livevars.ir.Value`.

Iteration order is insertion order so that printed results are
reproducible run to run, while equality ignores order so that fixpoint
detection is not fooled by two walks discovering the same values in a
different sequence.

Public API
----------
    ValueSet           - the set type
    union              - ``a ∪ b`` (a's order, then b's new elements)
    remove_all         - ``a \\ b`` (a's order)
    equals             - order-insensitive equality
    ValueSetLattice    - powerset lattice over ValueSet (join = union)
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Iterator, Optional


class ValueSet:
    """An immutable insertion-ordered set.

    Backed by a ``dict`` with ``None`` values, which keeps membership
    tests O(1) and preserves order.
    """

    __slots__ = ("_items",)

    def __init__(self, values: Iterable[Any] = ()) -> None:
        self._items: Dict[Any, None] = dict.fromkeys(values)

    @classmethod
    def _wrap(cls, items: Dict[Any, None]) -> "ValueSet":
        vs = cls.__new__(cls)
        vs._items = items
        return vs

    # ----- algebra --------------------------------------------------------

    def union(self, other: Iterable[Any]) -> "ValueSet":
        items = dict(self._items)
        for v in other:
            items.setdefault(v, None)
        return self._wrap(items)

    def remove_all(self, other: Iterable[Any]) -> "ValueSet":
        drop = other._items if isinstance(other, ValueSet) else set(other)
        if not drop:
            return self
        return self._wrap({v: None for v in self._items if v not in drop})

    def equals(self, other: "ValueSet") -> bool:
        return self._items.keys() == other._items.keys()

    def issubset(self, other: "ValueSet") -> bool:
        return self._items.keys() <= other._items.keys()

    # ----- container protocol ---------------------------------------------

    def __contains__(self, value: object) -> bool:
        return value in self._items

    def __iter__(self) -> Iterator[Any]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ValueSet):
            return self.equals(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(frozenset(self._items))

    def __or__(self, other: "ValueSet") -> "ValueSet":
        return self.union(other)

    def __sub__(self, other: "ValueSet") -> "ValueSet":
        return self.remove_all(other)

    def __le__(self, other: "ValueSet") -> bool:
        return self.issubset(other)

    def as_tuple(self) -> tuple:
        return tuple(self._items)

    def __repr__(self) -> str:
        return "ValueSet({" + ", ".join(map(repr, self._items)) + "})"


EMPTY = ValueSet()


def union(a: ValueSet, b: ValueSet) -> ValueSet:
    return a.union(b)


def remove_all(a: ValueSet, b: ValueSet) -> ValueSet:
    return a.remove_all(b)


def equals(a: ValueSet, b: ValueSet) -> bool:
    return a.equals(b)


class ValueSetLattice:
    """Powerset lattice over :class:`ValueSet` (may-analysis).

    ``bottom`` is the empty set, ``join`` is union and ``leq`` is
    inclusion.  ``top`` needs a finite universe.
    """

    def __init__(self, universe: Optional[Iterable[Any]] = None) -> None:
        self.universe = ValueSet(universe) if universe is not None else None

    def bottom(self) -> ValueSet:
        return EMPTY

    def top(self) -> ValueSet:
        if self.universe is None:
            raise ValueError("ValueSetLattice.top() requires a universe")
        return self.universe

    def join(self, a: ValueSet, b: ValueSet) -> ValueSet:
        return a.union(b)

    def join_all(self, values: Iterable[ValueSet]) -> ValueSet:
        result = EMPTY
        for v in values:
            result = result.union(v)
        return result

    def leq(self, a: ValueSet, b: ValueSet) -> bool:
        return a.issubset(b)

    def eq(self, a: ValueSet, b: ValueSet) -> bool:
        return a.equals(b)
