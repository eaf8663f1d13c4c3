from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, FrozenSet

from votegate.core.security.actor import Actor
from votegate.core.security.labels import LabelHierarchy

from .manager import AccessDecisionManager
from .votes import DecisionReport


@dataclass(frozen=True)
class AuthorizationChecker:
    """Single entry point for request handlers and view helpers.

    is_granted never raises for a denied decision. Callers that must fail
    closed turn False into their own access-denied signal.
    """

    manager: AccessDecisionManager
    hierarchy: LabelHierarchy = field(default_factory=LabelHierarchy.empty)

    def __post_init__(self) -> None:
        if not isinstance(self.manager, AccessDecisionManager):
            raise TypeError("manager must be an AccessDecisionManager instance")
        if not isinstance(self.hierarchy, LabelHierarchy):
            raise TypeError("hierarchy must be a LabelHierarchy instance")

    def is_granted(self, actor: Actor, attribute: str, subject: Any = None) -> bool:
        return self.manager.decide(actor, attribute, subject)

    def explain(self, actor: Actor, attribute: str, subject: Any = None) -> DecisionReport:
        return self.manager.explain(actor, attribute, subject)

    def expanded_labels(self, actor: Actor) -> FrozenSet[str]:
        return self.hierarchy.expand(actor.labels)
