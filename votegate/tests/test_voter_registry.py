import pytest

from votegate.core.decision.label_voter import LabelVoter
from votegate.core.decision.registry import VoterRegistry
from votegate.core.decision.builtin_voters import AuthenticatedVoter
from votegate.core.exceptions import ConfigurationError


def test_registry_preserves_order_and_freezes():
    reg = VoterRegistry()
    label = LabelVoter()
    auth = AuthenticatedVoter()

    reg.register(label)
    reg.register(auth)

    voters = reg.freeze()
    assert voters == (label, auth)
    assert isinstance(voters, tuple)
    assert reg.frozen is True

    with pytest.raises(ConfigurationError):
        reg.register(LabelVoter(voter_id="another"))


def test_registry_rejects_non_voters_and_duplicate_ids():
    reg = VoterRegistry()

    with pytest.raises(ConfigurationError):
        reg.register(object())

    reg.register(LabelVoter())
    with pytest.raises(ConfigurationError):
        reg.register(LabelVoter(prefix="GROUP_"))


def test_list_voters_returns_copy():
    reg = VoterRegistry.of([LabelVoter()])
    listed = reg.list_voters()
    listed.clear()

    assert len(reg.list_voters()) == 1
