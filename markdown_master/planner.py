"""
Execution planner.

Turns an unordered active rule set into a linear order: every active
dependency runs before its dependent, and ties are broken by ascending
priority. Depth-first topological sort with "in progress" / "done" marks;
re-entering an in-progress rule means the graph has a cycle.
"""
from __future__ import annotations
from typing import Dict, Iterable, List
import logging

from markdown_master.errors import CyclicDependencyError, DuplicateRuleError
from markdown_master.rules.base import Rule

logger = logging.getLogger(__name__)

_IN_PROGRESS = 1
_DONE = 2


def plan_execution(rules: Iterable[Rule]) -> List[Rule]:
    """
    Return the rules in execution order.

    Dependencies that name rules outside the active set are ignored, so an
    inactive optional rule never blocks the rest. Raises
    ``CyclicDependencyError`` (naming the cycle) or ``DuplicateRuleError``;
    nothing is partially planned.
    """
    by_name: Dict[str, Rule] = {}
    for rule in rules:
        if rule.name in by_name:
            raise DuplicateRuleError(rule.name)
        by_name[rule.name] = rule

    # stable sort: equal priorities keep the order the rules were activated in
    ranking = {name: i for i, name in enumerate(sorted(by_name, key=lambda n: by_name[n].priority))}

    marks: Dict[str, int] = {}
    path: List[str] = []
    order: List[Rule] = []

    def visit(name: str) -> None:
        state = marks.get(name)
        if state == _DONE:
            return
        if state == _IN_PROGRESS:
            cycle = path[path.index(name):] + [name]
            raise CyclicDependencyError(name, cycle)

        marks[name] = _IN_PROGRESS
        path.append(name)
        deps = [d for d in by_name[name].dependencies if d in by_name]
        for dep in sorted(deps, key=ranking.__getitem__):
            visit(dep)
        path.pop()
        marks[name] = _DONE
        order.append(by_name[name])

    for name in sorted(by_name, key=ranking.__getitem__):
        visit(name)

    logger.debug(f"Execution order: {[r.name for r in order]}")
    return order
