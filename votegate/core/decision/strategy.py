from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable

from votegate.core.exceptions import ConfigurationError

from .votes import Vote


class Strategy(str, Enum):
    """Aggregation policy combining votes into one boolean."""

    AFFIRMATIVE = "affirmative"
    CONSENSUS = "consensus"
    UNANIMOUS = "unanimous"

    @classmethod
    def parse(cls, value: Any) -> "Strategy":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise ConfigurationError(f"unknown decision strategy: {value!r}")


@dataclass(frozen=True)
class DecisionPolicy:
    """
    Strategy plus its two sub-policies.

    Security invariants
    - Immutable per manager
    - Both sub-policies default to deny
    """

    strategy: Strategy = Strategy.AFFIRMATIVE
    allow_if_all_abstain: bool = False
    allow_if_equal_granted_denied: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "strategy", Strategy.parse(self.strategy))
        for name in ("allow_if_all_abstain", "allow_if_equal_granted_denied"):
            if not isinstance(getattr(self, name), bool):
                raise ConfigurationError(f"{name} must be a bool")

    def with_strategy(self, strategy: Any) -> "DecisionPolicy":
        return DecisionPolicy(
            strategy=Strategy.parse(strategy),
            allow_if_all_abstain=self.allow_if_all_abstain,
            allow_if_equal_granted_denied=self.allow_if_equal_granted_denied,
        )


def _tally(votes: Iterable[Vote]) -> Dict[Vote, int]:
    counts = {Vote.GRANT: 0, Vote.DENY: 0, Vote.ABSTAIN: 0}
    for v in votes:
        counts[Vote(v)] += 1
    return counts


def affirmative(counts: Dict[Vote, int], policy: DecisionPolicy) -> bool:
    if counts[Vote.GRANT] > 0:
        return True
    if counts[Vote.DENY] > 0:
        return False
    return policy.allow_if_all_abstain


def consensus(counts: Dict[Vote, int], policy: DecisionPolicy) -> bool:
    grants = counts[Vote.GRANT]
    denies = counts[Vote.DENY]

    if grants > denies:
        return True
    if denies > grants:
        return False
    if grants > 0:
        return policy.allow_if_equal_granted_denied
    return policy.allow_if_all_abstain


def unanimous(counts: Dict[Vote, int], policy: DecisionPolicy) -> bool:
    if counts[Vote.DENY] > 0:
        return False
    if counts[Vote.GRANT] > 0:
        return True
    return policy.allow_if_all_abstain


_STRATEGIES: Dict[Strategy, Callable[[Dict[Vote, int], DecisionPolicy], bool]] = {
    Strategy.AFFIRMATIVE: affirmative,
    Strategy.CONSENSUS: consensus,
    Strategy.UNANIMOUS: unanimous,
}


def decide_votes(votes: Iterable[Vote], policy: DecisionPolicy) -> bool:
    """Aggregate votes under policy.strategy.

    Time:  O(n) for n votes
    Space: O(1)
    """

    return _STRATEGIES[policy.strategy](_tally(votes), policy)
