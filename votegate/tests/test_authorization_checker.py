from dataclasses import dataclass

import pytest

from votegate.core.decision.config import EngineConfig, build_checker
from votegate.core.decision.facade import AuthorizationChecker
from votegate.core.decision.manager import AccessDecisionManager
from votegate.core.decision.observability import CollectingFaultReporter
from votegate.core.decision.voter import AttributeVoter, Voter
from votegate.core.security.actor import Actor
from votegate.core.security.labels import LabelHierarchy


@dataclass
class _Post:
    owner: str
    locked: bool = False


class _PostVoter(AttributeVoter):
    """Owner may edit an unlocked post; moderators and admins may edit any."""

    voter_id = "post-voter"
    attributes = frozenset({"CAN_EDIT_POST"})
    subject_type = _Post

    def __init__(self, hierarchy: LabelHierarchy):
        self._hierarchy = hierarchy

    def vote_on_attribute(self, actor, attribute, subject):
        if subject.owner == actor.identity and not subject.locked:
            return True
        labels = self._hierarchy.expand(actor.labels)
        return "ROLE_MODERATOR" in labels or "ROLE_ADMIN" in labels


class _ExplodeVoter(Voter):
    voter_id = "explode"

    def vote(self, actor, attribute, subject=None):
        raise RuntimeError("database unavailable")


def _make_hierarchy() -> LabelHierarchy:
    return LabelHierarchy.build({"ROLE_ADMIN": ["ROLE_MODERATOR"], "ROLE_MODERATOR": ["ROLE_USER"]})


def _make_checker(*extra_voters, **kwargs) -> AuthorizationChecker:
    hierarchy = _make_hierarchy()
    config = EngineConfig(label_hierarchy=hierarchy)
    return build_checker(config, (*extra_voters, _PostVoter(hierarchy)), **kwargs)


def test_owner_can_edit_unlocked_post():
    checker = _make_checker()
    alice = Actor.create("alice", {"ROLE_USER"})

    assert checker.is_granted(alice, "CAN_EDIT_POST", _Post(owner="alice", locked=False)) is True


def test_owner_cannot_edit_locked_post_without_moderator_label():
    checker = _make_checker()
    alice = Actor.create("alice", {"ROLE_USER"})

    assert checker.is_granted(alice, "CAN_EDIT_POST", _Post(owner="alice", locked=True)) is False


def test_admin_can_edit_anyones_locked_post_through_hierarchy():
    checker = _make_checker()
    root = Actor.create("root", {"ROLE_ADMIN"})
    mod = Actor.create("mod", {"ROLE_MODERATOR"})
    locked = _Post(owner="alice", locked=True)

    assert checker.is_granted(root, "CAN_EDIT_POST", locked) is True
    assert checker.is_granted(mod, "CAN_EDIT_POST", locked) is True


def test_label_attributes_go_through_label_voter():
    checker = _make_checker()
    root = Actor.create("root", {"ROLE_ADMIN"})
    alice = Actor.create("alice", {"ROLE_USER"})

    assert checker.is_granted(root, "ROLE_USER") is True
    assert checker.is_granted(alice, "ROLE_ADMIN") is False
    assert checker.expanded_labels(root) == frozenset({"ROLE_ADMIN", "ROLE_MODERATOR", "ROLE_USER"})


def test_unknown_attribute_is_denied_not_raised():
    checker = _make_checker()
    alice = Actor.create("alice", {"ROLE_USER"})

    assert checker.is_granted(alice, "CAN_LAUNCH_ROCKETS") is False
    assert checker.is_granted(alice, "CAN_EDIT_POST") is False


def test_faulty_voter_does_not_block_grant_from_another_voter():
    reporter = CollectingFaultReporter()
    checker = _make_checker(_ExplodeVoter(), fault_reporter=reporter)
    alice = Actor.create("alice", {"ROLE_USER"})

    assert checker.is_granted(alice, "CAN_EDIT_POST", _Post(owner="alice")) is True
    assert [f.voter_id for f in reporter.faults] == ["explode"]


def test_explain_lists_every_voter():
    checker = _make_checker()
    alice = Actor.create("alice", {"ROLE_USER"})

    report = checker.explain(alice, "CAN_EDIT_POST", _Post(owner="alice"))
    assert [r.voter_id for r in report.votes] == ["label-voter", "authenticated-voter", "post-voter"]
    assert report.granted is True

    d = report.to_dict()
    assert d["actor_identity"] == "alice"
    assert d["grants"] == 1
    assert d["votes"][2] == {"voter_id": "post-voter", "vote": "GRANT", "error": None}


def test_checker_requires_manager():
    with pytest.raises(TypeError):
        AuthorizationChecker(manager=object())

    checker = AuthorizationChecker(manager=AccessDecisionManager())
    assert checker.is_granted(Actor.anonymous(), "ROLE_USER") is False
    assert checker.expanded_labels(Actor.create("x", {"ROLE_A"})) == frozenset({"ROLE_A"})
