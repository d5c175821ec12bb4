"""Deferred computation graph.

A graph is built from :func:`source` placeholders and :func:`node` calls
that wrap a function and its input nodes. Nothing runs at build time.
:func:`evaluate` binds concrete values to the sources and computes the target
node; intermediate results live in a memo table local to that call, so the
graph itself is never mutated and can be evaluated concurrently.

Example:
    >>> X = source("X")
    >>> doubled = node(lambda x: 2 * x, X, name="double")
    >>> total = node(sum, doubled, name="sum")
    >>> evaluate(total, [1, 2, 3])
    12
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Tuple


class Node:
    """A deferred call of ``func`` on the values of ``inputs``."""

    def __init__(
        self,
        func: Optional[Callable[..., Any]],
        inputs: Tuple["Node", ...] = (),
        name: Optional[str] = None,
    ) -> None:
        for item in inputs:
            if not isinstance(item, Node):
                raise TypeError(f"Node inputs must be nodes, got {type(item).__name__}")
        self._func = func
        self._inputs = tuple(inputs)
        self._name = name or getattr(func, "__name__", "node")

    @property
    def func(self) -> Optional[Callable[..., Any]]:
        return self._func

    @property
    def inputs(self) -> Tuple["Node", ...]:
        return self._inputs

    @property
    def name(self) -> str:
        return self._name

    def stages(self) -> List["Node"]:
        """All nodes this node depends on (itself included), inputs first."""
        order: List[Node] = []
        seen: set = set()
        stack: List[Tuple[Node, bool]] = [(self, False)]
        while stack:
            current, expanded = stack.pop()
            if expanded:
                order.append(current)
                continue
            if id(current) in seen:
                continue
            seen.add(id(current))
            stack.append((current, True))
            for item in reversed(current.inputs):
                if id(item) not in seen:
                    stack.append((item, False))
        return order

    @property
    def sources(self) -> Tuple["Source", ...]:
        """Sources reachable from this node, in first-visit order."""
        return tuple(n for n in self.stages() if isinstance(n, Source))

    def __call__(self, *values: Any, **bindings: Any) -> Any:
        return evaluate(self, *values, **bindings)

    def __repr__(self) -> str:
        inputs = ", ".join(item.name for item in self._inputs)
        return f"Node({self._name}: {inputs})"


class Source(Node):
    """Placeholder for data supplied at evaluation time."""

    def __init__(self, name: str = "X") -> None:
        super().__init__(None, (), name)

    def __repr__(self) -> str:
        return f"Source({self.name})"


def source(name: str = "X") -> Source:
    """Create a source placeholder."""
    return Source(name)


def node(func: Callable[..., Any], *inputs: Node, name: Optional[str] = None) -> Node:
    """Create a deferred call of ``func`` on the values of ``inputs``."""
    return Node(func, inputs, name)


def evaluate(target: Node, *values: Any, **bindings: Any) -> Any:
    """Compute ``target`` for concrete source values.

    Args:
        target: Node to compute.
        *values: Values bound to the target's sources, in ``target.sources``
            order.
        **bindings: Values bound to sources by name.

    Returns:
        The value of ``target``.

    Raises:
        ValueError: If a source is left unbound.
    """
    sources = target.sources
    bound: Dict[int, Any] = {}
    if len(values) > len(sources):
        raise ValueError(f"Got {len(values)} values for {len(sources)} sources")
    for src, value in zip(sources, values):
        bound[id(src)] = value
    for src in sources:
        if src.name in bindings:
            bound[id(src)] = bindings[src.name]
        if id(src) not in bound:
            raise ValueError(f"No value bound to source '{src.name}'")

    memo: Dict[int, Any] = {}
    for current in target.stages():
        if isinstance(current, Source):
            memo[id(current)] = bound[id(current)]
        else:
            args = [memo[id(item)] for item in current.inputs]
            memo[id(current)] = current.func(*args)
    return memo[id(target)]
