from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, FrozenSet, Iterable, Optional


def normalize_label(value: Any) -> str:
    """Return a stripped, non-empty label.

    Case is preserved: ``ROLE_ADMIN`` and ``role_admin`` are distinct labels.
    """

    if not isinstance(value, str):
        raise TypeError("label must be a string")

    label = value.strip()
    if not label:
        raise ValueError("label must be non-empty")
    return label


@dataclass(frozen=True)
class Actor:
    """
    Authenticated context a decision is made for.

    Security invariants
    - Immutable for the duration of a decision
    - Labels stored as a frozenset (order irrelevant, unique)
    - identity None means anonymous; the engine never verifies identity
    """

    identity: Optional[Any]
    labels: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        raw = self.labels
        if isinstance(raw, str):
            raise TypeError("labels must be an iterable of strings, not a string")

        try:
            labels = frozenset(normalize_label(x) for x in raw)
        except TypeError as e:
            raise TypeError("labels must be an iterable of strings") from e

        object.__setattr__(self, "labels", labels)

    @classmethod
    def create(cls, identity: Optional[Any], labels: Iterable[str] = ()) -> "Actor":
        return cls(identity=identity, labels=frozenset(labels))

    @classmethod
    def anonymous(cls) -> "Actor":
        return cls(identity=None)

    @property
    def is_anonymous(self) -> bool:
        return self.identity is None

    def has_label(self, label: str) -> bool:
        return label in self.labels
