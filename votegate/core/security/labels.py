from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Tuple

from votegate.core.exceptions import ConfigurationError, HierarchyCycleError

from .actor import normalize_label


def _normalize_implied(label: str, raw: Any) -> Tuple[str, ...]:
    if raw is None:
        return ()
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, (list, tuple, set, frozenset)):
        raise ConfigurationError(
            f"Implied labels for '{label}' must be a list of strings"
        )

    out: List[str] = []
    for item in raw:
        try:
            out.append(normalize_label(item))
        except (TypeError, ValueError) as e:
            raise ConfigurationError(
                f"Invalid implied label for '{label}': {item!r}"
            ) from e
    # Sets have no stable order; sort so cycle reports are reproducible.
    if isinstance(raw, (set, frozenset)):
        out.sort()
    return tuple(out)


def _normalize_mapping(mapping: Any) -> Dict[str, Tuple[str, ...]]:
    if not isinstance(mapping, Mapping):
        raise ConfigurationError("label hierarchy must be a mapping")

    edges: Dict[str, Tuple[str, ...]] = {}
    for key, raw in mapping.items():
        try:
            label = normalize_label(key)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid hierarchy label: {key!r}") from e
        if label in edges:
            raise ConfigurationError(f"Duplicate hierarchy label: {label}")
        edges[label] = _normalize_implied(label, raw)
    return edges


def _close(edges: Mapping[str, Tuple[str, ...]]) -> Dict[str, FrozenSet[str]]:
    """Compute the transitive closure of every label, failing on cycles.

    Depth-first walk; the current path is kept so a cycle can be reported.

    Time:  O(V * (V + E)) worst case for the unions
    Space: O(V^2)
    """

    closure: Dict[str, FrozenSet[str]] = {}
    visiting: List[str] = []
    on_path: set = set()

    def visit(label: str) -> FrozenSet[str]:
        done = closure.get(label)
        if done is not None:
            return done

        if label in on_path:
            start = visiting.index(label)
            raise HierarchyCycleError(visiting[start:] + [label])

        visiting.append(label)
        on_path.add(label)

        acc: set = set()
        for child in edges.get(label, ()):
            acc.add(child)
            acc |= visit(child)

        visiting.pop()
        on_path.discard(label)

        result = frozenset(acc)
        closure[label] = result
        return result

    for label in edges:
        visit(label)

    return closure


@dataclass(frozen=True)
class LabelHierarchy:
    """
    Immutable label implication graph with a precomputed transitive closure.

    Security invariants
    - Acyclic: cycles are rejected at build time with HierarchyCycleError
    - Read-only after build (closure exposed through a mappingproxy)
    - expand() is pure and deterministic

    Complexity
    - build: see _close
    - expand: O(n + k) for n input labels and k implied labels
    """

    closure: Mapping[str, FrozenSet[str]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def __post_init__(self) -> None:
        if not isinstance(self.closure, Mapping):
            raise TypeError("closure must be a mapping")
        object.__setattr__(self, "closure", MappingProxyType(dict(self.closure)))

    @classmethod
    def build(cls, mapping: Mapping[str, Iterable[str]]) -> "LabelHierarchy":
        """Validate a label -> implied labels mapping and close it."""

        edges = _normalize_mapping(mapping)
        return cls(closure=_close(edges))

    @classmethod
    def empty(cls) -> "LabelHierarchy":
        return cls()

    def implied_by(self, label: str) -> FrozenSet[str]:
        """Labels reachable from label, excluding label itself."""
        return self.closure.get(label, frozenset())

    def expand(self, labels: Iterable[str]) -> FrozenSet[str]:
        """Return labels plus every label they imply."""
        out = set(labels)
        for label in tuple(out):
            out |= self.closure.get(label, frozenset())
        return frozenset(out)
