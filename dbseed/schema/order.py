from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Sequence, Set, Tuple

from dbseed.schema.types import Table


@dataclass(frozen=True)
class OrderResult:
    order: Tuple[str, ...]
    cycles: Tuple[Tuple[str, ...], ...] = ()


def insert_order(tables: Sequence[Table]) -> OrderResult:
    """
    Depth-first topological order: referenced tables come before dependents.

    Tables are visited in declaration order, which is also the tie-break for
    unrelated tables. References to tables outside `tables` and
    self-references are ignored. A genuine cycle between distinct tables does
    not stop the walk (each table is still emitted exactly once, in a
    deterministic order) but every cycle found is returned as the list of
    tables on it, starting from the table where the walk re-entered.
    """
    by_name: Dict[str, Table] = {}
    for t in tables:
        by_name.setdefault(t.name, t)

    order: List[str] = []
    visited: Set[str] = set()
    stack: List[str] = []
    cycles: List[Tuple[str, ...]] = []
    seen_cycles: Set[frozenset] = set()

    def visit(name: str) -> None:
        if name not in by_name:
            return
        if name in visited:
            if name in stack:
                cycle = tuple(stack[stack.index(name) :])
                key = frozenset(cycle)
                if key not in seen_cycles:
                    seen_cycles.add(key)
                    cycles.append(cycle)
            return
        visited.add(name)
        stack.append(name)
        for dep in by_name[name].depends_on:
            visit(dep)
        stack.pop()
        order.append(name)

    for t in tables:
        visit(t.name)

    return OrderResult(order=tuple(order), cycles=tuple(cycles))
