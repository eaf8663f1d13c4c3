from __future__ import annotations

from dataclasses import dataclass
from typing import Any, FrozenSet, Mapping

from votegate.core.security.actor import Actor

from .voter import Voter
from .votes import Vote

IS_AUTHENTICATED = "IS_AUTHENTICATED"
IS_ANONYMOUS = "IS_ANONYMOUS"
PUBLIC_ACCESS = "PUBLIC_ACCESS"

_MISSING = object()


@dataclass(frozen=True)
class AuthenticatedVoter(Voter):
    """Votes on whether the actor carries an identity at all."""

    voter_id: str = "authenticated-voter"

    def supports(self, attribute: str, subject: Any = None) -> bool:
        return attribute in (IS_AUTHENTICATED, IS_ANONYMOUS, PUBLIC_ACCESS)

    def vote(self, actor: Actor, attribute: str, subject: Any = None) -> Vote:
        if attribute == PUBLIC_ACCESS:
            return Vote.GRANT
        if attribute == IS_AUTHENTICATED:
            return Vote.DENY if actor.is_anonymous else Vote.GRANT
        if attribute == IS_ANONYMOUS:
            return Vote.GRANT if actor.is_anonymous else Vote.DENY
        return Vote.ABSTAIN


def read_field(subject: Any, name: str, default: Any = None) -> Any:
    """Read name from a mapping key or an object attribute."""
    if isinstance(subject, Mapping):
        return subject.get(name, default)
    return getattr(subject, name, default)


@dataclass(frozen=True)
class OwnerVoter(Voter):
    """
    Grant when the subject is owned by the actor.

    Never denies: a non-owner gets ABSTAIN so label or application voters
    can still grant (e.g. moderators editing someone else's post).
    """

    attributes: FrozenSet[str] = frozenset()
    owner_field: str = "owner"
    voter_id: str = "owner-voter"

    def __post_init__(self) -> None:
        object.__setattr__(self, "attributes", frozenset(self.attributes))
        if not isinstance(self.owner_field, str) or not self.owner_field:
            raise ValueError("owner_field must be a non-empty string")

    def supports(self, attribute: str, subject: Any = None) -> bool:
        return subject is not None and attribute in self.attributes

    def vote(self, actor: Actor, attribute: str, subject: Any = None) -> Vote:
        if not self.supports(attribute, subject) or actor.is_anonymous:
            return Vote.ABSTAIN

        owner = read_field(subject, self.owner_field, _MISSING)
        if owner is _MISSING or owner is None:
            return Vote.ABSTAIN

        return Vote.GRANT if owner == actor.identity else Vote.ABSTAIN
