from dataclasses import dataclass

import pytest

from votegate.core.decision.builtin_voters import (
    IS_ANONYMOUS,
    IS_AUTHENTICATED,
    PUBLIC_ACCESS,
    AuthenticatedVoter,
    OwnerVoter,
)
from votegate.core.decision.voter import AttributeVoter, CallableVoter, Voter
from votegate.core.decision.votes import Vote
from votegate.core.security.actor import Actor


@dataclass
class _Post:
    owner: str
    locked: bool = False


class _PublishVoter(AttributeVoter):
    voter_id = "publish"
    attributes = frozenset({"CAN_PUBLISH"})
    subject_type = _Post

    def vote_on_attribute(self, actor, attribute, subject):
        return not subject.locked


def test_base_voter_requires_vote_implementation():
    with pytest.raises(NotImplementedError):
        Voter().vote(Actor.anonymous(), "X")


def test_attribute_voter_maps_bool_and_abstains_outside_its_scope():
    voter = _PublishVoter()
    actor = Actor.create("alice", ())

    assert voter.vote(actor, "CAN_PUBLISH", _Post(owner="alice")) == Vote.GRANT
    assert voter.vote(actor, "CAN_PUBLISH", _Post(owner="alice", locked=True)) == Vote.DENY
    assert voter.vote(actor, "CAN_DELETE", _Post(owner="alice")) == Vote.ABSTAIN
    assert voter.vote(actor, "CAN_PUBLISH", {"owner": "alice"}) == Vote.ABSTAIN
    assert voter.supports("CAN_PUBLISH", None) is False


def test_callable_voter_limits_attributes():
    voter = CallableVoter.for_attributes(
        "always-grant", ["CAN_READ"], lambda actor, attribute, subject: Vote.GRANT
    )
    actor = Actor.anonymous()

    assert voter.vote(actor, "CAN_READ") == Vote.GRANT
    assert voter.vote(actor, "CAN_WRITE") == Vote.ABSTAIN

    with pytest.raises(TypeError):
        CallableVoter(func="not-callable")


def test_authenticated_voter():
    voter = AuthenticatedVoter()
    alice = Actor.create("alice", ())
    anon = Actor.anonymous()

    assert voter.vote(alice, IS_AUTHENTICATED) == Vote.GRANT
    assert voter.vote(anon, IS_AUTHENTICATED) == Vote.DENY
    assert voter.vote(anon, IS_ANONYMOUS) == Vote.GRANT
    assert voter.vote(alice, IS_ANONYMOUS) == Vote.DENY
    assert voter.vote(anon, PUBLIC_ACCESS) == Vote.GRANT
    assert voter.vote(alice, "ROLE_USER") == Vote.ABSTAIN
    assert voter.supports("ROLE_USER") is False


def test_owner_voter_grants_owner_and_abstains_otherwise():
    voter = OwnerVoter(attributes={"CAN_EDIT_POST"})
    alice = Actor.create("alice", ())
    bob = Actor.create("bob", ())

    assert voter.vote(alice, "CAN_EDIT_POST", _Post(owner="alice")) == Vote.GRANT
    assert voter.vote(alice, "CAN_EDIT_POST", {"owner": "alice"}) == Vote.GRANT
    assert voter.vote(bob, "CAN_EDIT_POST", _Post(owner="alice")) == Vote.ABSTAIN
    assert voter.vote(alice, "CAN_EDIT_POST", None) == Vote.ABSTAIN
    assert voter.vote(alice, "CAN_EDIT_POST", {"author": "alice"}) == Vote.ABSTAIN
    assert voter.vote(Actor.anonymous(), "CAN_EDIT_POST", {"owner": None}) == Vote.ABSTAIN
    assert voter.vote(alice, "CAN_DELETE_POST", _Post(owner="alice")) == Vote.ABSTAIN


def test_owner_voter_custom_field():
    voter = OwnerVoter(attributes={"CAN_EDIT_DOC"}, owner_field="created_by")
    alice = Actor.create(7, ())

    assert voter.vote(alice, "CAN_EDIT_DOC", {"created_by": 7}) == Vote.GRANT

    with pytest.raises(ValueError):
        OwnerVoter(attributes={"X"}, owner_field="")
