from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from votegate.core.exceptions import ConfigurationError
from votegate.core.security.actor import Actor
from votegate.core.security.labels import LabelHierarchy

from .voter import Voter
from .votes import Vote


class AbsentLabelPolicy(str, Enum):
    """Vote cast when a label-shaped attribute is not held by the actor."""

    DENY = "deny"
    ABSTAIN = "abstain"

    @classmethod
    def parse(cls, value: Any) -> "AbsentLabelPolicy":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise ConfigurationError(f"invalid absent label policy: {value!r}")


@dataclass(frozen=True)
class LabelVoter(Voter):
    """
    Treat the attribute itself as a label.

    - ABSTAIN when the attribute does not start with prefix
    - GRANT when the hierarchy-expanded actor labels contain it
    - otherwise the configured AbsentLabelPolicy (DENY by default)

    An empty prefix makes every string attribute label-shaped.
    """

    hierarchy: LabelHierarchy = field(default_factory=LabelHierarchy.empty)
    prefix: str = "ROLE_"
    absent_label: AbsentLabelPolicy = AbsentLabelPolicy.DENY
    voter_id: str = "label-voter"

    def __post_init__(self) -> None:
        if not isinstance(self.hierarchy, LabelHierarchy):
            raise TypeError("hierarchy must be a LabelHierarchy instance")
        if not isinstance(self.prefix, str):
            raise TypeError("prefix must be a string")
        object.__setattr__(self, "absent_label", AbsentLabelPolicy.parse(self.absent_label))

    def supports(self, attribute: str, subject: Any = None) -> bool:
        return isinstance(attribute, str) and attribute.startswith(self.prefix)

    def vote(self, actor: Actor, attribute: str, subject: Any = None) -> Vote:
        if not self.supports(attribute, subject):
            return Vote.ABSTAIN

        if attribute in self.hierarchy.expand(actor.labels):
            return Vote.GRANT

        if self.absent_label == AbsentLabelPolicy.ABSTAIN:
            return Vote.ABSTAIN
        return Vote.DENY
