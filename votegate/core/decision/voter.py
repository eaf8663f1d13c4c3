from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, FrozenSet, Iterable, Optional, Tuple, Type, Union

from votegate.core.security.actor import Actor

from .votes import Vote


class Voter:
    """Decision unit producing one Vote per (actor, attribute, subject).

    supports() is an optimization hint only. A voter that answers True there
    and then returns ABSTAIN from vote() is equally correct.
    """

    voter_id: str = "voter"

    def supports(self, attribute: str, subject: Any = None) -> bool:
        return True

    def vote(self, actor: Actor, attribute: str, subject: Any = None) -> Vote:
        raise NotImplementedError


SubjectType = Union[Type[Any], Tuple[Type[Any], ...]]


class AttributeVoter(Voter):
    """
    Base for application voters handling a fixed set of attributes.

    Subclasses set ``attributes`` (and optionally ``subject_type``) and
    implement vote_on_attribute returning True for GRANT, False for DENY.
    Anything outside that set is an ABSTAIN.
    """

    voter_id: str = "attribute-voter"
    attributes: FrozenSet[str] = frozenset()
    subject_type: Optional[SubjectType] = None

    def supports(self, attribute: str, subject: Any = None) -> bool:
        if attribute not in self.attributes:
            return False
        if self.subject_type is not None and not isinstance(subject, self.subject_type):
            return False
        return True

    def vote(self, actor: Actor, attribute: str, subject: Any = None) -> Vote:
        if not self.supports(attribute, subject):
            return Vote.ABSTAIN
        return Vote.GRANT if self.vote_on_attribute(actor, attribute, subject) else Vote.DENY

    def vote_on_attribute(self, actor: Actor, attribute: str, subject: Any) -> bool:
        raise NotImplementedError


VoteFunction = Callable[[Actor, str, Any], Vote]


@dataclass(frozen=True)
class CallableVoter(Voter):
    """Wrap a plain function as a voter.

    attributes, when given, limits the attributes the function is called for.
    """

    func: VoteFunction
    voter_id: str = "callable-voter"
    attributes: Optional[FrozenSet[str]] = None

    def __post_init__(self) -> None:
        if not callable(self.func):
            raise TypeError("func must be callable")
        if not isinstance(self.voter_id, str) or not self.voter_id:
            raise ValueError("voter_id must be a non-empty string")
        if self.attributes is not None:
            object.__setattr__(self, "attributes", frozenset(self.attributes))

    @classmethod
    def for_attributes(
        cls, voter_id: str, attributes: Iterable[str], func: VoteFunction
    ) -> "CallableVoter":
        return cls(func=func, voter_id=voter_id, attributes=frozenset(attributes))

    def supports(self, attribute: str, subject: Any = None) -> bool:
        return self.attributes is None or attribute in self.attributes

    def vote(self, actor: Actor, attribute: str, subject: Any = None) -> Vote:
        if not self.supports(attribute, subject):
            return Vote.ABSTAIN
        return self.func(actor, attribute, subject)
